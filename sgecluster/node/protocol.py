"""Node bootstrap protocol, executed on every boot of every cluster host.

Steps, in order:

1. First boot only (no data mount point): refresh packages, repair broken
   installs, create the data mount point.
2. Create the resource mount point if missing.
3. Read `cluster-master` from metadata and compare it with the local short
   hostname to decide the role.
4. Format the data disk if it has no filesystem and mount it read-write.
   Mount the master's resource disk read-only when it is attached.
5. First time only (no shared mount point): the master creates and starts
   the shared volume from its data disk; execution hosts install the
   client. Then the shared mount point is created.
6. Mount the shared volume from the master, on every boot.
7. Activate the runtime environment when `runtime-env` is set.

Progress markers are the mount points themselves (see `state`), so a reboot
re-runs only what a fresh host still needs.
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from sgecluster.constants import (
    CLIENT_PACKAGE,
    DISK_BY_ID_PREFIX,
    SERVER_PACKAGE,
    SHARED_VOLUME,
    MetadataKey,
)
from sgecluster.core.exceptions import BootstrapError, CommandError
from sgecluster.disks import data_disk_name, resource_disk_name
from sgecluster.node.metadata import MetadataClient
from sgecluster.node.runner import CommandRunner
from sgecluster.node.state import (
    BootstrapState,
    MountMarkers,
    NodePaths,
    advance,
    volume_state,
)
from sgecluster.spec import Role

log = logger.bind(component="node")

SHARED_MODE = 0o777


@dataclass(frozen=True, slots=True)
class NodeConfig:
    """Tunables for the bootstrap run.

    Args:
        volume: Name of the shared volume exported by the master.
        mount_attempts: Attempts for the shared-volume mount.
        mount_min_wait: Lower bound of the backoff between mount attempts, in seconds.
        mount_max_wait: Upper bound of the backoff between mount attempts, in seconds.
    """

    volume: str = SHARED_VOLUME
    mount_attempts: int = 10
    mount_min_wait: float = 2.0
    mount_max_wait: float = 30.0


def short_hostname() -> str:
    return socket.gethostname().split(".")[0]


class NodeBootstrap:
    def __init__(
        self,
        runner: CommandRunner,
        metadata: MetadataClient,
        *,
        paths: NodePaths | None = None,
        config: NodeConfig | None = None,
        hostname: str | None = None,
    ) -> None:
        self._runner = runner
        self._metadata = metadata
        self.paths = paths or NodePaths()
        self.config = config or NodeConfig()
        self.hostname = hostname or short_hostname()

    def run(self) -> BootstrapState:
        """Run one boot. Returns the state reached."""
        markers = MountMarkers.observe(self.paths)
        log.info("Booting {host} (markers: {markers})", host=self.hostname, markers=markers)

        if not markers.data:
            self.prepare_host()
        self.ensure_dir(self.paths.resource)

        master = self._metadata.get(MetadataKey.CLUSTER_MASTER)
        role = Role.MASTER if master == self.hostname else Role.EXECUTION
        bound = log.bind(role=role, host=self.hostname)
        state = markers.state(role)
        bound.info("Role {role}, master {master}, state {state}", role=role, master=master, state=state)

        self.mount_local_disks(master)
        if state is BootstrapState.UNBOOTSTRAPPED:
            state = advance(state, BootstrapState.DATA_MOUNTED)

        if state is BootstrapState.DATA_MOUNTED:
            self.form_shared_volume(role, master)
            state = advance(state, volume_state(role))

        self.mount_shared_volume(master)
        self.activate_runtime()

        bound.info("Bootstrap finished in state {state}", state=state)
        return state

    # -- step 1 / 2 -------------------------------------------------------

    def prepare_host(self) -> None:
        log.info("First boot: refreshing packages")
        self._runner.run(["apt-get", "update"])
        self._runner.run(["apt-get", "install", "--fix-broken", "-y"])
        self.ensure_dir(self.paths.data)

    def ensure_dir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    # -- step 4 -----------------------------------------------------------

    def device_link(self, disk: str) -> Path:
        return self.paths.by_id / f"{DISK_BY_ID_PREFIX}{disk}"

    def resolve_device(self, disk: str) -> Path:
        link = self.device_link(disk)
        if not link.exists():
            raise BootstrapError(f"Disk {disk} is not attached ({link} not found)")
        return link.resolve()

    def is_mounted(self, path: Path) -> bool:
        return self._runner.succeeds(["mountpoint", "-q", str(path)])

    def has_filesystem(self, device: Path) -> bool:
        return self._runner.succeeds(["blkid", "-p", str(device)])

    def mount_local_disks(self, master: str) -> None:
        data = self.resolve_device(data_disk_name(self.hostname))
        if self.is_mounted(self.paths.data):
            log.debug("{path} already mounted", path=self.paths.data)
        else:
            if not self.has_filesystem(data):
                log.info("Formatting {dev}", dev=data, disk=data_disk_name(self.hostname))
                self._runner.run(["mkfs.ext4", "-F", str(data)])
            self._runner.run(["mount", "-o", "discard,defaults", str(data), str(self.paths.data)])
        self.paths.data.chmod(SHARED_MODE)

        if self.is_mounted(self.paths.resource):
            log.debug("{path} already mounted", path=self.paths.resource)
            return
        # the mounted filesystem is read-only, so relax the mount point first
        self.paths.resource.chmod(SHARED_MODE)

        resource = resource_disk_name(master)
        if not self.device_link(resource).exists():
            log.info("No resource disk attached, skipping {path}", path=self.paths.resource)
            return
        device = self.resolve_device(resource)
        self._runner.run(["mount", "-o", "ro", str(device), str(self.paths.resource)])

    # -- step 5 -----------------------------------------------------------

    def form_shared_volume(self, role: Role, master: str) -> None:
        volume = self.config.volume
        match role:
            case Role.MASTER:
                log.info("Creating shared volume {volume}", volume=volume)
                self._runner.run(["apt-get", "install", "-y", SERVER_PACKAGE])
                self._runner.run([
                    "gluster", "volume", "create", volume,
                    f"{master}:{self.paths.data}", "force",
                ])
                self._runner.run(["gluster", "volume", "start", volume])
            case Role.EXECUTION:
                log.info("Installing shared volume client")
                self._runner.run(["apt-get", "install", "-y", CLIENT_PACKAGE])
        self.ensure_dir(self.paths.shared)

    # -- step 6 -----------------------------------------------------------

    def mount_shared_volume(self, master: str) -> None:
        """Mount `<master>:/<volume>`, retrying while the master comes up."""
        source = f"{master}:/{self.config.volume}"
        args = ["mount", "-t", "glusterfs", source, str(self.paths.shared)]

        @retry(
            stop=stop_after_attempt(self.config.mount_attempts),
            wait=wait_exponential(
                multiplier=1, min=self.config.mount_min_wait, max=self.config.mount_max_wait,
            ),
            retry=retry_if_exception_type(CommandError),
            before_sleep=_log_mount_retry,
            reraise=True,
        )
        def _mount() -> None:
            try:
                self._runner.run(args)
            except CommandError:
                if not self.is_mounted(self.paths.shared):
                    raise
                log.info("{path} already mounted", path=self.paths.shared)

        _mount()
        log.info("Mounted {source} on {path}", source=source, path=self.paths.shared)

    # -- step 7 -----------------------------------------------------------

    def activate_runtime(self) -> None:
        env = self._metadata.get_optional(MetadataKey.RUNTIME_ENV)
        if not env:
            return
        profile = self.paths.runtime_profile
        profile.parent.mkdir(parents=True, exist_ok=True)
        profile.write_text(f"# Written by sgecluster-node\nworkon {env}\n")
        log.info("Runtime environment {env} activated via {profile}", env=env, profile=profile)


def _log_mount_retry(state: RetryCallState) -> None:
    err = state.outcome.exception() if state.outcome else None
    log.warning(
        "Shared volume mount failed (attempt {n}): {err}", n=state.attempt_number, err=err,
    )
