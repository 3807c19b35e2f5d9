from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from sgecluster.core.exceptions import NotFoundError, ProviderError
from sgecluster.providers.provider import DiskRequest, InstanceRequest, InstanceSummary
from sgecluster.spec import ClusterSpec, HostNamePattern, RoleSpec


@dataclass
class Call:
    op: str
    name: str
    zone: str = ""
    request: object = None


@dataclass
class RecordingProvider:
    """In-memory ComputeProvider that records every call in order.

    `missing` names make deletes raise NotFoundError; `failing` names make
    any call on them raise ProviderError.
    """

    missing: set[str] = field(default_factory=set)
    failing: set[str] = field(default_factory=set)
    calls: list[Call] = field(default_factory=list)
    instances: dict[str, InstanceRequest] = field(default_factory=dict)
    closed: bool = False

    def _check(self, name: str) -> None:
        if name in self.failing:
            raise ProviderError(f"simulated failure on {name}")

    async def create_disk(self, request: DiskRequest) -> None:
        self.calls.append(Call("create_disk", request.name, request.zone, request))
        self._check(request.name)

    async def delete_disk(self, name: str, zone: str) -> None:
        self.calls.append(Call("delete_disk", name, zone))
        self._check(name)
        if name in self.missing:
            raise NotFoundError(f"disk {name} not found")

    async def create_instance(self, request: InstanceRequest) -> None:
        self.calls.append(Call("create_instance", request.name, request.zone, request))
        self._check(request.name)
        self.instances[request.name] = request

    async def delete_instance(self, name: str, zone: str) -> None:
        self.calls.append(Call("delete_instance", name, zone))
        self._check(name)
        if name in self.missing:
            raise NotFoundError(f"instance {name} not found")
        self.instances.pop(name, None)

    async def list_instances(
        self, prefix: str, zones: Sequence[str],
    ) -> Sequence[InstanceSummary]:
        self.calls.append(Call("list_instances", prefix, ",".join(zones)))
        return [
            InstanceSummary(name=r.name, zone=r.zone, status="RUNNING")
            for r in self.instances.values()
            if r.name.startswith(f"{prefix}-")
        ]

    async def close(self) -> None:
        self.closed = True

    def ops(self, op: str) -> list[Call]:
        return [c for c in self.calls if c.op == op]

    def names(self, op: str) -> list[str]:
        return [c.name for c in self.ops(op)]


def make_spec(
    *,
    prefix: str = "cosmos-sge",
    execution_count: int = 3,
    master_count: int = 1,
    resource_source: str = "bundle-A",
    **kwargs: object,
) -> ClusterSpec:
    master_pattern = f"{prefix}-mm-%d" if master_count > 1 else f"{prefix}-mm"
    return ClusterSpec(
        prefix=prefix,
        master=RoleSpec(
            name_pattern=HostNamePattern(master_pattern),
            machine_type="n1-highmem-4",
            zone="us-central1-b",
            image="cosmos-master-4-v14",
            disk_size_gb=500,
        ),
        execution=RoleSpec(
            name_pattern=HostNamePattern(f"{prefix}-eh-%d"),
            machine_type="n1-highmem-4",
            zone="us-central1-b",
            image="cosmos-slave-v14",
            disk_size_gb=500,
        ),
        master_count=master_count,
        execution_count=execution_count,
        resource_source=resource_source,
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()


@pytest.fixture
def spec() -> ClusterSpec:
    return make_spec()


@pytest.fixture
def spec_factory():
    return make_spec
