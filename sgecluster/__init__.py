"""sgecluster - Bring a grid-engine compute cluster up or down on Compute Engine.

Example:

    from sgecluster import ClusterController, Operation, resolve_settings

    settings = resolve_settings()
    provider = await settings.provider.create_provider()
    instances = await ClusterController(settings.cluster, provider).run(Operation.parse("up-full"))
"""

from sgecluster.config import Settings, resolve_settings
from sgecluster.controller import ClusterController, Operation, Verb
from sgecluster.core.exceptions import (
    AlreadyExistsError,
    BootstrapError,
    CommandError,
    ConfigurationError,
    MetadataError,
    NotFoundError,
    ProviderError,
    ProviderTimeoutError,
    SgeClusterError,
    UsageError,
)
from sgecluster.naming import ClusterTopology, HostIdentity, topology
from sgecluster.providers import GCP
from sgecluster.spec import ClusterSpec, HostNamePattern, Role, RoleSpec

__version__ = "0.1.0"

__all__ = [
    # Orchestration
    "ClusterController",
    "Operation",
    "Verb",
    # Configuration
    "Settings",
    "resolve_settings",
    "ClusterSpec",
    "RoleSpec",
    "HostNamePattern",
    "Role",
    "GCP",
    # Topology
    "ClusterTopology",
    "HostIdentity",
    "topology",
    # Errors
    "SgeClusterError",
    "ConfigurationError",
    "UsageError",
    "ProviderError",
    "NotFoundError",
    "AlreadyExistsError",
    "ProviderTimeoutError",
    "BootstrapError",
    "MetadataError",
    "CommandError",
]
