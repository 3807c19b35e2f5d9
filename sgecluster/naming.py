"""Deterministic host identities.

Pure functions mapping (role, index) to host names. Nothing here performs
I/O; the same ClusterSpec always yields the same names, which is what lets
a later `down` target exactly what an earlier `up` created.
"""

from __future__ import annotations

from dataclasses import dataclass

from sgecluster.spec import ClusterSpec, Role


@dataclass(frozen=True, slots=True)
class HostIdentity:
    """A host's role, index and canonical name."""

    role: Role
    index: int
    name: str

    @property
    def is_master(self) -> bool:
        return self.role is Role.MASTER


@dataclass(frozen=True, slots=True)
class ClusterTopology:
    """All host identities of one run, masters and executions in index order."""

    masters: tuple[HostIdentity, ...]
    executions: tuple[HostIdentity, ...]

    @property
    def master_names(self) -> tuple[str, ...]:
        return tuple(h.name for h in self.masters)

    @property
    def execution_names(self) -> tuple[str, ...]:
        return tuple(h.name for h in self.executions)

    def __iter__(self):
        yield from self.masters
        yield from self.executions


def master_name(spec: ClusterSpec, index: int) -> str:
    """Name of the master host at a 0-based index."""
    if not 0 <= index < spec.master_count:
        raise IndexError(f"master index {index} outside [0, {spec.master_count})")
    return spec.master.name_pattern.render(index)


def execution_name(spec: ClusterSpec, index: int) -> str:
    """Name of the execution host at a 1-based index."""
    if not 1 <= index <= spec.execution_count:
        raise IndexError(f"execution index {index} outside [1, {spec.execution_count}]")
    return spec.execution.name_pattern.render(index)


def master_hosts(spec: ClusterSpec) -> tuple[HostIdentity, ...]:
    return tuple(
        HostIdentity(Role.MASTER, i, master_name(spec, i))
        for i in range(spec.master_count)
    )


def execution_hosts(spec: ClusterSpec) -> tuple[HostIdentity, ...]:
    return tuple(
        HostIdentity(Role.EXECUTION, i, execution_name(spec, i))
        for i in range(1, spec.execution_count + 1)
    )


def topology(spec: ClusterSpec) -> ClusterTopology:
    return ClusterTopology(masters=master_hosts(spec), executions=execution_hosts(spec))
