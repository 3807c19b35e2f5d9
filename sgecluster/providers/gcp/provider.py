"""GCP Compute Engine provider for sgecluster.

Implements the ComputeProvider protocol using the sync google-cloud-compute
clients dispatched to a dedicated thread pool. Every call waits for its zone
operation to finish and is bounded by the configured deadline.
"""

from __future__ import annotations

import asyncio
import functools
import os
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any

from loguru import logger

from sgecluster.core.exceptions import (
    AlreadyExistsError,
    ConfigurationError,
    NotFoundError,
    ProviderError,
    ProviderTimeoutError,
)
from sgecluster.providers.provider import DiskRequest, InstanceRequest, InstanceSummary

from .config import GCP

log = logger.bind(component="gcp")


class GCPProvider:
    """Stateless GCP provider. Holds only immutable config + sync clients."""

    def __init__(
        self,
        config: GCP,
        instances_client: object,
        disks_client: object,
        project: str,
        thread_pool: ThreadPoolExecutor,
    ) -> None:
        self._config = config
        self._instances = instances_client
        self._disks = disks_client
        self._project = project
        self._pool = thread_pool

    @property
    def project(self) -> str:
        return self._project

    async def _run[T](self, fn: Callable[..., T], *args: object, **kwargs: object) -> T:
        loop = asyncio.get_running_loop()
        call = functools.partial(fn, *args, **kwargs)
        timeout = self._config.call_timeout
        try:
            return await asyncio.wait_for(loop.run_in_executor(self._pool, call), timeout=timeout)
        except TimeoutError as e:
            raise ProviderTimeoutError(
                f"Provider call did not complete within {timeout:.0f}s"
            ) from e

    @classmethod
    async def create(cls, config: GCP) -> GCPProvider:
        from google.cloud import compute_v1  # type: ignore[reportMissingImports]

        project = _resolve_project(config.project)
        log.info("Resolved GCP project: {project}", project=project)

        thread_pool = ThreadPoolExecutor(
            max_workers=config.thread_pool_size,
            thread_name_prefix="gcp-io",
        )

        return cls(
            config=config,
            instances_client=compute_v1.InstancesClient(),
            disks_client=compute_v1.DisksClient(),
            project=project,
            thread_pool=thread_pool,
        )

    async def create_disk(self, request: DiskRequest) -> None:
        from google.cloud import compute_v1  # type: ignore[reportMissingImports]

        log.info("Creating disk {name} in {zone}", name=request.name, zone=request.zone)
        await self._run(
            _execute,
            self._disks.insert,  # type: ignore[union-attr]
            compute_v1.InsertDiskRequest(
                project=self._project,
                zone=request.zone,
                disk_resource=build_disk(request, self._project),
            ),
            self._config.call_timeout,
        )

    async def delete_disk(self, name: str, zone: str) -> None:
        from google.cloud import compute_v1  # type: ignore[reportMissingImports]

        log.info("Deleting disk {name} in {zone}", name=name, zone=zone)
        await self._run(
            _execute,
            self._disks.delete,  # type: ignore[union-attr]
            compute_v1.DeleteDiskRequest(project=self._project, zone=zone, disk=name),
            self._config.call_timeout,
        )

    async def create_instance(self, request: InstanceRequest) -> None:
        from google.cloud import compute_v1  # type: ignore[reportMissingImports]

        log.info(
            "Creating instance {name} ({mt}) in {zone}",
            name=request.name, mt=request.machine_type, zone=request.zone,
        )
        await self._run(
            _execute,
            self._instances.insert,  # type: ignore[union-attr]
            compute_v1.InsertInstanceRequest(
                project=self._project,
                zone=request.zone,
                instance_resource=build_instance(request, self._project),
            ),
            self._config.call_timeout,
        )

    async def delete_instance(self, name: str, zone: str) -> None:
        from google.cloud import compute_v1  # type: ignore[reportMissingImports]

        log.info("Deleting instance {name} in {zone}", name=name, zone=zone)
        await self._run(
            _execute,
            self._instances.delete,  # type: ignore[union-attr]
            compute_v1.DeleteInstanceRequest(project=self._project, zone=zone, instance=name),
            self._config.call_timeout,
        )

    async def list_instances(
        self, prefix: str, zones: Sequence[str],
    ) -> Sequence[InstanceSummary]:
        from google.cloud import compute_v1  # type: ignore[reportMissingImports]

        summaries: list[InstanceSummary] = []
        for zone in zones:
            gce_instances = await self._run(
                _collect,
                self._instances.list,  # type: ignore[union-attr]
                compute_v1.ListInstancesRequest(
                    project=self._project,
                    zone=zone,
                    filter=f"name eq '{prefix}-.*'",
                ),
            )
            summaries.extend(
                _summarize(inst, zone)
                for inst in gce_instances
                if inst.name.startswith(f"{prefix}-")
            )
        return summaries

    async def close(self) -> None:
        self._pool.shutdown(wait=False)


# =============================================================================
# Blocking helpers (run inside the thread pool)
# =============================================================================


def _execute(fn: Callable[..., Any], request: object, timeout: float) -> None:
    """Issue a mutating call and block until its operation is done."""
    with _translated_errors():
        operation = fn(request=request)
        result = getattr(operation, "result", None)
        if callable(result):
            result(timeout=timeout)


def _collect(fn: Callable[..., Any], request: object) -> list[Any]:
    with _translated_errors():
        return list(fn(request=request))


@contextmanager
def _translated_errors() -> Iterator[None]:
    """Map google.api_core exceptions onto the ProviderError hierarchy."""
    try:
        yield
    except Exception as e:
        if (translated := translate_error(e)) is None:
            raise
        raise translated from e


def translate_error(exc: BaseException) -> ProviderError | None:
    """Translate an SDK exception, or None if it is not an API error."""
    from google.api_core import exceptions as gexc  # type: ignore[reportMissingImports]

    match exc:
        case gexc.NotFound():
            return NotFoundError(str(exc))
        case gexc.Conflict():
            return AlreadyExistsError(str(exc))
        case gexc.GoogleAPICallError():
            return ProviderError(str(exc))
        case _:
            return None


# =============================================================================
# Pure helper functions (no GCP API calls)
# =============================================================================


def image_path(project: str, image: str) -> str:
    """Qualify a bare image name with the project's global image path."""
    if "/" in image:
        return image
    return f"projects/{project}/global/images/{image}"


def snapshot_path(project: str, snapshot: str) -> str:
    """Qualify a bare snapshot name with the project's global snapshot path."""
    if "/" in snapshot:
        return snapshot
    return f"projects/{project}/global/snapshots/{snapshot}"


def disk_path(project: str, zone: str, name: str) -> str:
    return f"projects/{project}/zones/{zone}/disks/{name}"


def build_disk(request: DiskRequest, project: str) -> Any:
    from google.cloud import compute_v1  # type: ignore[reportMissingImports]

    disk = compute_v1.Disk(name=request.name)
    if request.source_image:
        disk.source_image = image_path(project, request.source_image)
    if request.source_snapshot:
        disk.source_snapshot = snapshot_path(project, request.source_snapshot)
    if request.size_gb:
        disk.size_gb = request.size_gb
    return disk


def build_instance(request: InstanceRequest, project: str) -> Any:
    from google.cloud import compute_v1  # type: ignore[reportMissingImports]

    disks = [
        compute_v1.AttachedDisk(
            source=disk_path(project, request.zone, d.name),
            device_name=d.name,
            boot=d.boot,
            mode=d.mode,
            auto_delete=False,
        )
        for d in request.disks
    ]

    network_interface = compute_v1.NetworkInterface(
        network=f"global/networks/{request.network}",
        access_configs=[
            compute_v1.AccessConfig(
                name="External NAT",
                type_="ONE_TO_ONE_NAT",
            ),
        ],
    )

    metadata = compute_v1.Metadata(
        items=[compute_v1.Items(key=k, value=v) for k, v in request.metadata.items()],
    )

    instance = compute_v1.Instance(
        name=request.name,
        machine_type=f"zones/{request.zone}/machineTypes/{request.machine_type}",
        disks=disks,
        network_interfaces=[network_interface],
        metadata=metadata,
    )

    if request.scopes:
        instance.service_accounts = [
            compute_v1.ServiceAccount(email="default", scopes=list(request.scopes)),
        ]

    return instance


def _summarize(instance: Any, zone: str) -> InstanceSummary:
    internal_ip = None
    external_ip = None
    for iface in getattr(instance, "network_interfaces", None) or []:
        internal_ip = internal_ip or getattr(iface, "network_i_p", None) or None
        for config in getattr(iface, "access_configs", None) or []:
            external_ip = external_ip or getattr(config, "nat_i_p", None) or None
    return InstanceSummary(
        name=instance.name,
        zone=zone,
        status=str(getattr(instance, "status", "")),
        internal_ip=internal_ip,
        external_ip=external_ip,
    )


def _resolve_project(explicit: str | None) -> str:
    """Resolve GCP project: explicit > env > ADC."""
    if explicit:
        return explicit

    if env_project := os.environ.get("GOOGLE_CLOUD_PROJECT"):
        return env_project

    if env_project := os.environ.get("GCLOUD_PROJECT"):
        return env_project

    import google.auth  # type: ignore[reportMissingImports]
    from google.auth.exceptions import DefaultCredentialsError  # type: ignore[reportMissingImports]

    try:
        _, project = google.auth.default()
    except DefaultCredentialsError:
        project = None
    if project:
        return project

    raise ConfigurationError(
        "No GCP project found. Set GOOGLE_CLOUD_PROJECT env var, "
        "set [provider].project, or configure Application Default Credentials."
    )
