"""Teardown of cluster instances and, under `full`, their disks.

Deletion is fail-soft per resource: a missing or undeletable resource is
logged and the sequence continues, so a partially torn-down cluster can be
torn down again.
"""

from __future__ import annotations

from loguru import logger

from sgecluster.core.exceptions import NotFoundError, ProviderError
from sgecluster.disks import DiskManager
from sgecluster.naming import ClusterTopology, HostIdentity
from sgecluster.providers.provider import ComputeProvider
from sgecluster.spec import ClusterSpec

log = logger.bind(component="teardown")


class TeardownOrchestrator:
    def __init__(self, provider: ComputeProvider, spec: ClusterSpec, disks: DiskManager) -> None:
        self._provider = provider
        self._spec = spec
        self._disks = disks

    async def delete_host(self, identity: HostIdentity, *, full: bool) -> None:
        zone = self._spec.role(identity.role).zone
        bound = log.bind(host=identity.name, role=identity.role, zone=zone)

        try:
            await self._provider.delete_instance(identity.name, zone)
        except NotFoundError:
            bound.warning("Instance {name} does not exist", name=identity.name)
        except ProviderError as e:
            bound.warning("Failed to delete instance {name}: {err}", name=identity.name, err=e)
        else:
            bound.info("Deleted instance {name}", name=identity.name)

        await self._disks.delete_disks(identity, full=full)

    async def delete_cluster(self, topology: ClusterTopology, *, full: bool) -> None:
        """Delete every host, execution hosts before masters.

        The master's resource disk stays attached read-only to execution
        hosts until they are gone, so masters go last.
        """
        for identity in topology.executions:
            await self.delete_host(identity, full=full)

        for identity in topology.masters:
            await self.delete_host(identity, full=full)
