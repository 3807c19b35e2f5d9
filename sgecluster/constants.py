"""Centralized constants for sgecluster.

Metadata keys, filesystem paths and provider defaults shared by the
orchestrator and the node bootstrap protocol.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

# =============================================================================
# Instance Metadata
# =============================================================================


class MetadataKey(StrEnum):
    """Instance metadata keys written at creation, read at boot."""

    CLUSTER_MASTER = "cluster-master"
    STARTUP_SCRIPT = "startup-script"
    RUNTIME_ENV = "runtime-env"


METADATA_URL: Final = "http://metadata.google.internal/computeMetadata/v1/instance/attributes/"
METADATA_HEADERS: Final = {"Metadata-Flavor": "Google"}


# =============================================================================
# Node Filesystem Paths
# =============================================================================

DATA_MOUNT: Final = "/mnt/data"
RESOURCE_MOUNT: Final = "/mnt/resource"
SHARED_MOUNT: Final = "/mnt/share"
DISK_BY_ID_DIR: Final = "/dev/disk/by-id"
DISK_BY_ID_PREFIX: Final = "google-"
RUNTIME_PROFILE: Final = "/etc/profile.d/sgecluster-runtime.sh"

SHARED_VOLUME: Final = "share"
SERVER_PACKAGE: Final = "glusterfs-server"
CLIENT_PACKAGE: Final = "glusterfs-client"


# =============================================================================
# Disk Naming
# =============================================================================

DATA_DISK_SUFFIX: Final = "-data"
RESOURCE_DISK_SUFFIX: Final = "-resource"


# =============================================================================
# Provider Defaults
# =============================================================================

DEFAULT_NETWORK: Final = "default"
DEFAULT_SCOPES: Final = ("https://www.googleapis.com/auth/devstorage.full_control",)
DEFAULT_CALL_TIMEOUT: Final = 600.0
NODE_PACKAGE: Final = "sgecluster"
NODE_COMMAND: Final = "sgecluster-node"
NODE_VENV: Final = "/opt/sgecluster/venv"
