"""Immutable cluster description.

ClusterSpec is built once from configuration and passed explicitly through
every orchestrator component. Host-name patterns are validated here, at
construction, so a malformed pattern fails before any provider call.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from sgecluster.constants import (
    DATA_DISK_SUFFIX,
    DEFAULT_NETWORK,
    DEFAULT_SCOPES,
    NODE_PACKAGE,
    RESOURCE_DISK_SUFFIX,
)
from sgecluster.core.exceptions import ConfigurationError

_CONVERSION = re.compile(r"%(%|[-+ 0#]*\d*(?:\.\d+)?[a-zA-Z])")
_INT_CONVERSION = re.compile(r"[-0 ]*\d*d")
_GCE_NAME = re.compile(r"[a-z](?:[-a-z0-9]{0,61}[a-z0-9])?")

MAX_NAME_LENGTH: Final = 63


class Role(StrEnum):
    """Cluster role of a host."""

    MASTER = "master"
    EXECUTION = "execution"


@dataclass(frozen=True, slots=True)
class HostNamePattern:
    """printf-style host-name pattern with at most one integer placeholder.

    Example:
        >>> HostNamePattern("cosmos-sge-eh-%d").render(3)
        'cosmos-sge-eh-3'
        >>> HostNamePattern("cosmos-sge-mm").render(0)
        'cosmos-sge-mm'
    """

    template: str

    def __post_init__(self) -> None:
        conversions = [m.group(1) for m in _CONVERSION.finditer(self.template)]
        placeholders = [c for c in conversions if c != "%"]

        if len(placeholders) > 1:
            raise ConfigurationError(
                f"Host name pattern '{self.template}' has more than one placeholder"
            )
        if placeholders and not _INT_CONVERSION.fullmatch(placeholders[0]):
            raise ConfigurationError(
                f"Host name pattern '{self.template}' must use an integer "
                f"placeholder (%d), got '%{placeholders[0]}'"
            )
        stripped = _CONVERSION.sub("", self.template)
        if "%" in stripped:
            raise ConfigurationError(
                f"Host name pattern '{self.template}' has a dangling '%'"
            )

    @property
    def indexed(self) -> bool:
        """Whether the pattern varies with the host index."""
        return any(m.group(1) != "%" for m in _CONVERSION.finditer(self.template))

    def render(self, index: int) -> str:
        if self.indexed:
            return self.template % index
        return self.template.replace("%%", "%")


@dataclass(frozen=True, slots=True)
class RoleSpec:
    """Per-role machine configuration.

    Args:
        name_pattern: Host name pattern for this role.
        machine_type: Compute Engine machine type (e.g., n1-highmem-4).
        zone: Zone for instances and disks of this role.
        image: Boot image name or full image path.
        disk_size_gb: Size of the per-host data disk.
    """

    name_pattern: HostNamePattern
    machine_type: str
    zone: str
    image: str
    disk_size_gb: int

    def __post_init__(self) -> None:
        if self.disk_size_gb <= 0:
            raise ConfigurationError(
                f"disk_size_gb must be positive, got {self.disk_size_gb}"
            )
        for attr in ("machine_type", "zone", "image"):
            if not getattr(self, attr):
                raise ConfigurationError(f"Role setting '{attr}' must not be empty")


@dataclass(frozen=True, slots=True)
class ClusterSpec:
    """Immutable description of one cluster.

    Args:
        prefix: Cluster prefix; instances named '<prefix>-*' are listed after up.
        master: Master role configuration.
        execution: Execution role configuration.
        master_count: Number of master hosts (0-based indices).
        execution_count: Number of execution hosts (1-based indices).
        resource_source: Snapshot to create the shared resource disk from.
            Empty means no resource disk.
        network: VPC network name.
        scopes: Service account scopes granted to every instance.
        node_package: pip requirement installed by the default startup script.
        runtime_env: Virtualenv activated in login shells on each node.
        startup_script: Path to a custom startup script replacing the default.
    """

    prefix: str
    master: RoleSpec
    execution: RoleSpec
    master_count: int = 1
    execution_count: int = 1
    resource_source: str = ""
    network: str = DEFAULT_NETWORK
    scopes: tuple[str, ...] = field(default=DEFAULT_SCOPES)
    node_package: str = NODE_PACKAGE
    runtime_env: str = ""
    startup_script: str | None = None

    def __post_init__(self) -> None:
        if self.master_count < 1:
            raise ConfigurationError("master_count must be at least 1")
        if self.execution_count < 1:
            raise ConfigurationError("execution_count must be at least 1")
        if self.resource_source and self.master.zone != self.execution.zone:
            raise ConfigurationError(
                "resource_source needs master and execution hosts in one zone "
                f"(master: {self.master.zone}, execution: {self.execution.zone})"
            )

        for role, count in ((Role.MASTER, self.master_count), (Role.EXECUTION, self.execution_count)):
            pattern = self.role(role).name_pattern
            if count > 1 and not pattern.indexed:
                raise ConfigurationError(
                    f"{role} pattern '{pattern.template}' has no placeholder "
                    f"but {count} hosts are configured"
                )

        masters = {self.master.name_pattern.render(i) for i in range(self.master_count)}
        executions = {
            self.execution.name_pattern.render(i)
            for i in range(1, self.execution_count + 1)
        }

        if clash := masters & executions:
            raise ConfigurationError(
                f"Master and execution host names collide: {', '.join(sorted(clash))}"
            )

        for name in sorted(masters | executions):
            _validate_resource_name(name)
            _validate_resource_name(name + DATA_DISK_SUFFIX)
        for name in sorted(masters):
            _validate_resource_name(name + RESOURCE_DISK_SUFFIX)

    def role(self, role: Role) -> RoleSpec:
        match role:
            case Role.MASTER:
                return self.master
            case Role.EXECUTION:
                return self.execution

    @property
    def zones(self) -> tuple[str, ...]:
        """Distinct zones used by the cluster, master first."""
        return tuple(dict.fromkeys((self.master.zone, self.execution.zone)))


def _validate_resource_name(name: str) -> None:
    if len(name) > MAX_NAME_LENGTH or not _GCE_NAME.fullmatch(name):
        raise ConfigurationError(
            f"'{name}' is not a valid Compute Engine resource name "
            "(lowercase letters, digits and '-', starting with a letter, "
            f"at most {MAX_NAME_LENGTH} characters)"
        )
