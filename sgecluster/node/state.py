"""Bootstrap state machine persisted through mount-point markers.

The node keeps no state file. The existence of three paths is the only
durable record of how far bootstrap has progressed:

    UNBOOTSTRAPPED  no data mount point
    DATA_MOUNTED    data mount point, no shared mount point
    VOLUME_FORMED   shared mount point on the master (volume created)
    VOLUME_JOINED   shared mount point on an execution host (client installed)

Transitions only move forward: UNBOOTSTRAPPED -> DATA_MOUNTED ->
VOLUME_FORMED | VOLUME_JOINED. The shared-volume mount itself is not a
state; it is re-issued on every boot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from sgecluster.constants import (
    DATA_MOUNT,
    DISK_BY_ID_DIR,
    RESOURCE_MOUNT,
    RUNTIME_PROFILE,
    SHARED_MOUNT,
)
from sgecluster.core.exceptions import BootstrapError
from sgecluster.spec import Role


class BootstrapState(StrEnum):
    UNBOOTSTRAPPED = "unbootstrapped"
    DATA_MOUNTED = "data-mounted"
    VOLUME_FORMED = "volume-formed"
    VOLUME_JOINED = "volume-joined"


TRANSITIONS: dict[BootstrapState, frozenset[BootstrapState]] = {
    BootstrapState.UNBOOTSTRAPPED: frozenset({BootstrapState.DATA_MOUNTED}),
    BootstrapState.DATA_MOUNTED: frozenset({
        BootstrapState.VOLUME_FORMED,
        BootstrapState.VOLUME_JOINED,
    }),
    BootstrapState.VOLUME_FORMED: frozenset(),
    BootstrapState.VOLUME_JOINED: frozenset(),
}


def advance(current: BootstrapState, target: BootstrapState) -> BootstrapState:
    """Move to `target`, rejecting anything but a defined transition."""
    if target not in TRANSITIONS[current]:
        raise BootstrapError(f"Invalid bootstrap transition {current} -> {target}")
    return target


def volume_state(role: Role) -> BootstrapState:
    """Terminal state reached by a host of `role`."""
    return BootstrapState.VOLUME_FORMED if role is Role.MASTER else BootstrapState.VOLUME_JOINED


@dataclass(frozen=True, slots=True)
class NodePaths:
    """Node-local paths; the three mount points double as state markers."""

    data: Path = Path(DATA_MOUNT)
    resource: Path = Path(RESOURCE_MOUNT)
    shared: Path = Path(SHARED_MOUNT)
    by_id: Path = Path(DISK_BY_ID_DIR)
    runtime_profile: Path = Path(RUNTIME_PROFILE)


@dataclass(frozen=True, slots=True)
class MountMarkers:
    """Which marker paths existed when a boot started."""

    data: bool
    resource: bool
    shared: bool

    @classmethod
    def observe(cls, paths: NodePaths) -> MountMarkers:
        return cls(
            data=paths.data.exists(),
            resource=paths.resource.exists(),
            shared=paths.shared.exists(),
        )

    def state(self, role: Role) -> BootstrapState:
        if self.shared:
            return volume_state(role)
        if self.data:
            return BootstrapState.DATA_MOUNTED
        return BootstrapState.UNBOOTSTRAPPED
