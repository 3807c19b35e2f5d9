"""Per-host bootstrap, run from the instance startup script."""

from sgecluster.node.metadata import MetadataClient
from sgecluster.node.protocol import NodeBootstrap, NodeConfig
from sgecluster.node.runner import CommandRunner, SubprocessRunner
from sgecluster.node.state import BootstrapState, MountMarkers, NodePaths

__all__ = [
    "BootstrapState",
    "CommandRunner",
    "MetadataClient",
    "MountMarkers",
    "NodeBootstrap",
    "NodeConfig",
    "NodePaths",
    "SubprocessRunner",
]
