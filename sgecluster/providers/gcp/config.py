"""GCP provider configuration.

Immutable configuration dataclass for the GCP Compute Engine provider.
"""

from __future__ import annotations

import typing
from dataclasses import dataclass

from sgecluster.constants import DEFAULT_CALL_TIMEOUT

if typing.TYPE_CHECKING:
    from sgecluster.providers.gcp.provider import GCPProvider


@dataclass(frozen=True, slots=True)
class GCP:
    """GCP Compute Engine provider configuration.

    The project is auto-detected from Application Default Credentials
    or the GOOGLE_CLOUD_PROJECT environment variable if not specified.

    Example:
        >>> from sgecluster.providers.gcp import GCP
        >>> config = GCP(project="my-project", call_timeout=300)

    Args:
        project: GCP project ID. Auto-detected from ADC or GOOGLE_CLOUD_PROJECT.
        call_timeout: Deadline in seconds for each provider call, including
            the wait for its zone operation. Default: 600.
        thread_pool_size: Worker threads for the sync GCP clients.
    """

    project: str | None = None
    call_timeout: float = DEFAULT_CALL_TIMEOUT
    thread_pool_size: int = 4

    @property
    def type(self) -> str: return "gcp"

    async def create_provider(self) -> GCPProvider:
        from sgecluster.providers.gcp.provider import GCPProvider
        return await GCPProvider.create(self)
