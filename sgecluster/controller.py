"""Cluster controller: maps an operation onto the provisioning components."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from loguru import logger

from sgecluster.bootstrap import startup_script
from sgecluster.core.exceptions import UsageError
from sgecluster.disks import DiskManager
from sgecluster.instances import InstanceProvisioner
from sgecluster.naming import ClusterTopology, topology
from sgecluster.providers.provider import ComputeProvider, InstanceSummary
from sgecluster.spec import ClusterSpec
from sgecluster.teardown import TeardownOrchestrator

log = logger.bind(component="controller")

FULL_SUFFIX: Final = "-full"
USAGE: Final = "Usage: sgecluster [up-full | up | down-full | down]"


class Verb(StrEnum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True, slots=True)
class Operation:
    """A requested lifecycle operation; `full` also creates/destroys disks."""

    verb: Verb
    full: bool = False

    @classmethod
    def parse(cls, token: str | None) -> Operation:
        """Parse one of `up`, `up-full`, `down`, `down-full`."""
        raw = (token or "").strip()
        full = raw.endswith(FULL_SUFFIX)
        base = raw.removesuffix(FULL_SUFFIX) if full else raw
        try:
            return cls(verb=Verb(base), full=full)
        except ValueError:
            raise UsageError(USAGE) from None

    def __str__(self) -> str:
        return f"{self.verb}{FULL_SUFFIX if self.full else ''}"


class ClusterController:
    """Sequences one up or down run for a ClusterSpec.

    The topology is recomputed from the ClusterSpec on every run; nothing about the
    cluster is stored between invocations.
    """

    def __init__(self, spec: ClusterSpec, provider: ComputeProvider) -> None:
        self._spec = spec
        self._provider = provider
        self._disks = DiskManager(provider, spec)
        self._provisioner = InstanceProvisioner(provider, spec, self._disks, startup_script(spec))
        self._teardown = TeardownOrchestrator(provider, spec, self._disks)

    @property
    def topology(self) -> ClusterTopology:
        return topology(self._spec)

    async def run(self, operation: Operation) -> Sequence[InstanceSummary]:
        log.info("Running {op} for cluster {prefix}", op=str(operation), prefix=self._spec.prefix)
        match operation.verb:
            case Verb.UP:
                return await self.up(full=operation.full)
            case Verb.DOWN:
                await self.down(full=operation.full)
                return ()

    async def up(self, *, full: bool) -> Sequence[InstanceSummary]:
        """Create masters, then execution hosts, then list the cluster."""
        hosts = self.topology
        source = self._spec.resource_source

        for identity in hosts.masters:
            await self._provisioner.add_master_host(identity, full=full, resource_source=source)

        for identity in hosts.executions:
            await self._provisioner.add_execution_host(
                identity, hosts.master_names, full=full, resource_source=source,
            )

        instances = await self._provider.list_instances(self._spec.prefix, self._spec.zones)
        log.info("Cluster {prefix} has {n} instances", prefix=self._spec.prefix, n=len(instances))
        return instances

    async def down(self, *, full: bool) -> None:
        await self._teardown.delete_cluster(self.topology, full=full)
        log.info("Cluster {prefix} torn down", prefix=self._spec.prefix)
