"""Cloud providers for sgecluster.

NOTE: Only config classes are imported at package level to avoid deps.
For provider implementations, import explicitly:

    from sgecluster.providers.gcp.provider import GCPProvider
"""

from __future__ import annotations

from .gcp import GCP
from .provider import (
    AttachedDisk,
    ComputeProvider,
    DiskRequest,
    InstanceRequest,
    InstanceSummary,
    ProviderConfig,
)

__all__ = [
    "GCP",
    "AttachedDisk",
    "ComputeProvider",
    "DiskRequest",
    "InstanceRequest",
    "InstanceSummary",
    "ProviderConfig",
]
