"""Custom exception hierarchy for sgecluster.

All sgecluster-specific exceptions inherit from SgeClusterError, enabling
callers to catch every cluster failure with a single except clause.
"""

from __future__ import annotations

from collections.abc import Sequence


class SgeClusterError(Exception):
    """Base exception for all sgecluster errors."""


class ConfigurationError(SgeClusterError):
    """Raised for invalid configuration or missing required settings."""


class UsageError(SgeClusterError):
    """Raised when the requested operation is not recognized."""


class ProviderError(SgeClusterError):
    """Raised when a cloud provider call fails."""


class NotFoundError(ProviderError):
    """Raised when the target resource does not exist."""


class AlreadyExistsError(ProviderError):
    """Raised when creating a resource that already exists."""


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its deadline."""


class BootstrapError(SgeClusterError):
    """Raised when a node bootstrap step fails."""


class MetadataError(BootstrapError):
    """Raised when the metadata server cannot be queried."""


class CommandError(BootstrapError):
    """Raised when a bootstrap command exits non-zero.

    The message is the command's own stderr, unmodified.
    """

    def __init__(self, args: Sequence[str], returncode: int, stderr: str) -> None:
        self.argv = tuple(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(stderr.strip() or f"{' '.join(self.argv)} exited with {returncode}")
