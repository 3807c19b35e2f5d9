"""Provider interface consumed by the orchestrator.

The orchestrator only ever speaks to a ComputeProvider; the cloud's own
CRUD API sits behind it. Request models are plain frozen dataclasses so the
orchestrator stays independent of any SDK message types.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class DiskRequest:
    """A persistent disk to create.

    Exactly one of source_image, source_snapshot or size_gb is set.
    """

    name: str
    zone: str
    source_image: str | None = None
    source_snapshot: str | None = None
    size_gb: int | None = None

    def __post_init__(self) -> None:
        sources = [s for s in (self.source_image, self.source_snapshot, self.size_gb) if s]
        if len(sources) != 1:
            raise ValueError(
                f"Disk '{self.name}' needs exactly one of source_image, "
                "source_snapshot or size_gb"
            )


@dataclass(frozen=True, slots=True)
class AttachedDisk:
    """An existing disk attached to a new instance."""

    name: str
    boot: bool = False
    read_only: bool = False

    @property
    def mode(self) -> str:
        return "READ_ONLY" if self.read_only else "READ_WRITE"


@dataclass(frozen=True, slots=True)
class InstanceRequest:
    """An instance to create from already-existing disks."""

    name: str
    zone: str
    machine_type: str
    network: str
    disks: tuple[AttachedDisk, ...]
    metadata: Mapping[str, str] = field(default_factory=dict)
    scopes: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class InstanceSummary:
    """One row of a provider instance listing."""

    name: str
    zone: str
    status: str
    internal_ip: str | None = None
    external_ip: str | None = None


@runtime_checkable
class ComputeProvider(Protocol):
    """Asynchronous CRUD over disks and instances.

    Every call blocks (from the caller's point of view) until the provider
    reports the operation done. Failures raise ProviderError subclasses:
    NotFoundError, AlreadyExistsError or ProviderTimeoutError.
    """

    async def create_disk(self, request: DiskRequest) -> None: ...

    async def delete_disk(self, name: str, zone: str) -> None: ...

    async def create_instance(self, request: InstanceRequest) -> None: ...

    async def delete_instance(self, name: str, zone: str) -> None: ...

    async def list_instances(
        self, prefix: str, zones: Sequence[str],
    ) -> Sequence[InstanceSummary]: ...

    async def close(self) -> None: ...


@runtime_checkable
class ProviderConfig[P](Protocol):
    @property
    def type(self) -> str: ...

    async def create_provider(self) -> P: ...


__all__ = [
    "AttachedDisk",
    "ComputeProvider",
    "DiskRequest",
    "InstanceRequest",
    "InstanceSummary",
    "ProviderConfig",
]
