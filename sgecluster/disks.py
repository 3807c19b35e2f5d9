"""Disk lifecycle: per-host disk names and their create/delete calls.

Every host owns a boot disk (named after the host) and a data disk
(`<host>-data`). The optional resource disk is owned by the master and named
`<master>-resource`; execution hosts only ever attach it read-only.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from sgecluster.constants import DATA_DISK_SUFFIX, RESOURCE_DISK_SUFFIX
from sgecluster.core.exceptions import NotFoundError, ProviderError
from sgecluster.naming import HostIdentity
from sgecluster.providers.provider import ComputeProvider, DiskRequest
from sgecluster.spec import ClusterSpec

log = logger.bind(component="disks")


def data_disk_name(host: str) -> str:
    return f"{host}{DATA_DISK_SUFFIX}"


def resource_disk_name(master: str) -> str:
    return f"{master}{RESOURCE_DISK_SUFFIX}"


@dataclass(frozen=True, slots=True)
class DiskSet:
    """Names of the disks a host attaches."""

    boot: str
    data: str
    resource: str | None = None

    @classmethod
    def for_host(cls, host: str, master: str, resource_source: str) -> DiskSet:
        """Disks attached to `host`; the resource disk is always named from `master`."""
        return cls(
            boot=host,
            data=data_disk_name(host),
            resource=resource_disk_name(master) if resource_source else None,
        )

    def __iter__(self):
        yield self.boot
        yield self.data
        if self.resource is not None:
            yield self.resource


class DiskManager:
    """Issues disk create/delete calls for one ClusterSpec."""

    def __init__(self, provider: ComputeProvider, spec: ClusterSpec) -> None:
        self._provider = provider
        self._spec = spec

    def owned_disks(self, identity: HostIdentity, resource_source: str) -> DiskSet:
        """Disks whose lifecycle belongs to `identity`.

        Only the master owns the resource disk.
        """
        disks = DiskSet.for_host(identity.name, identity.name, resource_source)
        if not identity.is_master:
            return DiskSet(boot=disks.boot, data=disks.data)
        return disks

    async def create_disks(
        self, identity: HostIdentity, *, full: bool, resource_source: str,
    ) -> None:
        """Create the host's disks when `full`; failures propagate."""
        if not full:
            return

        role = self._spec.role(identity.role)
        disks = self.owned_disks(identity, resource_source)
        bound = log.bind(host=identity.name, zone=role.zone)

        bound.info("Creating boot disk from image {image}", image=role.image)
        await self._provider.create_disk(
            DiskRequest(name=disks.boot, zone=role.zone, source_image=role.image),
        )

        bound.info("Creating {size}GB data disk", size=role.disk_size_gb)
        await self._provider.create_disk(
            DiskRequest(name=disks.data, zone=role.zone, size_gb=role.disk_size_gb),
        )

        if disks.resource is not None:
            bound.info("Creating resource disk from snapshot {src}", src=resource_source)
            await self._provider.create_disk(
                DiskRequest(name=disks.resource, zone=role.zone, source_snapshot=resource_source),
            )

    async def delete_disks(
        self, identity: HostIdentity, *, full: bool, resource_source: str | None = None,
    ) -> None:
        """Delete the host's disks when `full`; each deletion is independent."""
        if not full:
            return

        source = self._spec.resource_source if resource_source is None else resource_source
        zone = self._spec.role(identity.role).zone

        for name in self.owned_disks(identity, source):
            bound = log.bind(disk=name, zone=zone)
            try:
                await self._provider.delete_disk(name, zone)
            except NotFoundError:
                bound.warning("Disk {name} does not exist", name=name)
            except ProviderError as e:
                bound.warning("Failed to delete disk {name}: {err}", name=name, err=e)
            else:
                bound.info("Deleted disk {name}", name=name)
