"""GCP Compute Engine provider for sgecluster.

Creates persistent disks and instances through google-cloud-compute.

NOTE: Only config classes are imported at package level to avoid deps.
For provider implementation, import explicitly:

    from sgecluster.providers.gcp.provider import GCPProvider

Environment Variables:
    GOOGLE_CLOUD_PROJECT: GCP project ID (required if not passed directly)
    GOOGLE_APPLICATION_CREDENTIALS: Path to service account key (optional)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .provider import GCPProvider

from .config import GCP

__all__ = [
    "GCP",
    "GCPProvider",
]
