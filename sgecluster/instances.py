"""Instance provisioning for master and execution hosts.

Each call optionally creates the host's disks, then creates one instance
attaching them. Role information travels to the node only through the
instance metadata written here.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from sgecluster.constants import MetadataKey
from sgecluster.disks import DiskManager, DiskSet
from sgecluster.naming import HostIdentity
from sgecluster.providers.provider import AttachedDisk, ComputeProvider, InstanceRequest
from sgecluster.spec import ClusterSpec

log = logger.bind(component="instances")


class InstanceProvisioner:
    """Creates cluster instances. Any failure propagates (fail-fast)."""

    def __init__(
        self,
        provider: ComputeProvider,
        spec: ClusterSpec,
        disks: DiskManager,
        startup_script: str,
    ) -> None:
        self._provider = provider
        self._spec = spec
        self._disks = disks
        self._startup_script = startup_script

    async def add_master_host(
        self, identity: HostIdentity, *, full: bool, resource_source: str,
    ) -> None:
        await self._disks.create_disks(identity, full=full, resource_source=resource_source)
        disks = DiskSet.for_host(identity.name, identity.name, resource_source)
        await self._create(identity, disks, master=identity.name)

    async def add_execution_host(
        self,
        identity: HostIdentity,
        masters: Sequence[str],
        *,
        full: bool,
        resource_source: str,
    ) -> None:
        """Create an execution host federated with the primary master.

        The resource disk, if any, is the master's, attached read-only.
        """
        if not masters:
            raise ValueError(f"Execution host {identity.name} needs at least one master")

        master = masters[0]
        await self._disks.create_disks(identity, full=full, resource_source=resource_source)
        disks = DiskSet.for_host(identity.name, master, resource_source)
        await self._create(identity, disks, master=master)

    def metadata(self, master: str) -> dict[str, str]:
        items = {
            MetadataKey.CLUSTER_MASTER: master,
            MetadataKey.STARTUP_SCRIPT: self._startup_script,
        }
        if self._spec.runtime_env:
            items[MetadataKey.RUNTIME_ENV] = self._spec.runtime_env
        return {str(k): v for k, v in items.items()}

    async def _create(self, identity: HostIdentity, disks: DiskSet, *, master: str) -> None:
        role = self._spec.role(identity.role)

        attached = [
            AttachedDisk(name=disks.boot, boot=True),
            AttachedDisk(name=disks.data),
        ]
        if disks.resource is not None:
            attached.append(AttachedDisk(name=disks.resource, read_only=True))

        log.bind(host=identity.name, role=identity.role).info(
            "Creating instance attaching {disks} (cluster-master={master})",
            disks=", ".join(d.name for d in attached),
            master=master,
        )

        await self._provider.create_instance(
            InstanceRequest(
                name=identity.name,
                zone=role.zone,
                machine_type=role.machine_type,
                network=self._spec.network,
                disks=tuple(attached),
                metadata=self.metadata(master),
                scopes=self._spec.scopes,
            ),
        )
