from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from google.api_core import exceptions as gexc

from sgecluster.core.exceptions import (
    AlreadyExistsError,
    ConfigurationError,
    NotFoundError,
    ProviderError,
    ProviderTimeoutError,
)
from sgecluster.providers.gcp.config import GCP
from sgecluster.providers.gcp.provider import (
    GCPProvider,
    _resolve_project,
    build_disk,
    build_instance,
    disk_path,
    image_path,
    snapshot_path,
    translate_error,
)
from sgecluster.providers.provider import (
    AttachedDisk,
    DiskRequest,
    InstanceRequest,
    ProviderConfig,
)


class FakeOperation:
    def __init__(self) -> None:
        self.waited_with: float | None = None

    def result(self, timeout: float) -> None:
        self.waited_with = timeout


class FakeClient:
    """Stands in for a compute_v1 client; records requests by method."""

    def __init__(self, *, error: Exception | None = None, listing=(), delay: float = 0) -> None:
        self.requests: list[tuple[str, object]] = []
        self.operations: list[FakeOperation] = []
        self._error = error
        self._listing = listing
        self._delay = delay

    def _call(self, method: str, request: object) -> FakeOperation:
        if self._delay:
            time.sleep(self._delay)
        self.requests.append((method, request))
        if self._error is not None:
            raise self._error
        op = FakeOperation()
        self.operations.append(op)
        return op

    def insert(self, request):
        return self._call("insert", request)

    def delete(self, request):
        return self._call("delete", request)

    def list(self, request):
        self.requests.append(("list", request))
        return iter(self._listing)


def _provider(instances=None, disks=None, **config) -> GCPProvider:
    return GCPProvider(
        config=GCP(project="proj", **config),
        instances_client=instances or FakeClient(),
        disks_client=disks or FakeClient(),
        project="proj",
        thread_pool=ThreadPoolExecutor(max_workers=2),
    )


def _instance_request(**overrides) -> InstanceRequest:
    fields = dict(
        name="cosmos-sge-eh-1",
        zone="us-central1-b",
        machine_type="n1-highmem-4",
        network="default",
        disks=(
            AttachedDisk("cosmos-sge-eh-1", boot=True),
            AttachedDisk("cosmos-sge-eh-1-data"),
            AttachedDisk("cosmos-sge-mm-resource", read_only=True),
        ),
        metadata={"cluster-master": "cosmos-sge-mm", "startup-script": "#!/bin/bash"},
        scopes=("https://www.googleapis.com/auth/devstorage.full_control",),
    )
    fields.update(overrides)
    return InstanceRequest(**fields)


class TestPaths:
    def test_bare_image_qualified(self):
        assert image_path("p", "cosmos-slave-v14") == "projects/p/global/images/cosmos-slave-v14"

    def test_full_image_untouched(self):
        path = "projects/debian-cloud/global/images/family/debian-12"
        assert image_path("p", path) == path

    def test_snapshot(self):
        assert snapshot_path("p", "gatk-bundle-v3") == "projects/p/global/snapshots/gatk-bundle-v3"

    def test_disk(self):
        assert disk_path("p", "z", "d") == "projects/p/zones/z/disks/d"


class TestDiskRequest:
    def test_requires_exactly_one_source(self):
        with pytest.raises(ValueError, match="exactly one"):
            DiskRequest(name="d", zone="z", source_image="i", size_gb=10)
        with pytest.raises(ValueError, match="exactly one"):
            DiskRequest(name="d", zone="z")


class TestBuildDisk:
    def test_from_image(self):
        disk = build_disk(DiskRequest("b", "z", source_image="img"), "p")
        assert disk.name == "b"
        assert disk.source_image == "projects/p/global/images/img"

    def test_from_snapshot(self):
        disk = build_disk(DiskRequest("r", "z", source_snapshot="snap"), "p")
        assert disk.source_snapshot == "projects/p/global/snapshots/snap"

    def test_blank(self):
        assert build_disk(DiskRequest("d", "z", size_gb=500), "p").size_gb == 500


class TestBuildInstance:
    def test_disks_attached_in_order_with_modes(self):
        instance = build_instance(_instance_request(), "proj")
        assert [(d.device_name, d.boot, d.mode) for d in instance.disks] == [
            ("cosmos-sge-eh-1", True, "READ_WRITE"),
            ("cosmos-sge-eh-1-data", False, "READ_WRITE"),
            ("cosmos-sge-mm-resource", False, "READ_ONLY"),
        ]
        assert instance.disks[2].source == (
            "projects/proj/zones/us-central1-b/disks/cosmos-sge-mm-resource"
        )
        assert not any(d.auto_delete for d in instance.disks)

    def test_machine_type_network_metadata(self):
        instance = build_instance(_instance_request(), "proj")
        assert instance.machine_type == "zones/us-central1-b/machineTypes/n1-highmem-4"
        assert instance.network_interfaces[0].network == "global/networks/default"
        assert instance.network_interfaces[0].access_configs[0].type_ == "ONE_TO_ONE_NAT"
        assert {i.key: i.value for i in instance.metadata.items} == {
            "cluster-master": "cosmos-sge-mm",
            "startup-script": "#!/bin/bash",
        }

    def test_service_account_scopes(self):
        instance = build_instance(_instance_request(), "proj")
        assert list(instance.service_accounts[0].scopes) == [
            "https://www.googleapis.com/auth/devstorage.full_control",
        ]

    def test_no_scopes_no_service_account(self):
        assert len(build_instance(_instance_request(scopes=()), "proj").service_accounts) == 0


class TestTranslateError:
    def test_not_found(self):
        assert isinstance(translate_error(gexc.NotFound("gone")), NotFoundError)

    def test_conflict(self):
        assert isinstance(translate_error(gexc.Conflict("exists")), AlreadyExistsError)

    def test_other_api_error(self):
        translated = translate_error(gexc.Forbidden("denied"))
        assert type(translated) is ProviderError

    def test_non_api_error_passes(self):
        assert translate_error(RuntimeError("x")) is None


class TestProviderCalls:
    @pytest.mark.asyncio
    async def test_create_disk_waits_for_operation(self):
        disks = FakeClient()
        provider = _provider(disks=disks, call_timeout=42)
        await provider.create_disk(DiskRequest("d", "us-central1-b", size_gb=10))
        await provider.close()

        ((method, request),) = disks.requests
        assert method == "insert"
        assert request.zone == "us-central1-b"
        assert request.disk_resource.size_gb == 10
        assert disks.operations[0].waited_with == 42

    @pytest.mark.asyncio
    async def test_delete_instance_not_found(self):
        instances = FakeClient(error=gexc.NotFound("instance not found"))
        provider = _provider(instances=instances)
        with pytest.raises(NotFoundError, match="instance not found"):
            await provider.delete_instance("cosmos-sge-eh-1", "us-central1-b")
        await provider.close()

    @pytest.mark.asyncio
    async def test_create_instance_conflict(self):
        instances = FakeClient(error=gexc.Conflict("already exists"))
        provider = _provider(instances=instances)
        with pytest.raises(AlreadyExistsError):
            await provider.create_instance(_instance_request())
        await provider.close()

    @pytest.mark.asyncio
    async def test_deadline(self):
        provider = _provider(disks=FakeClient(delay=0.5), call_timeout=0.05)
        with pytest.raises(ProviderTimeoutError):
            await provider.delete_disk("d", "z")
        await provider.close()

    @pytest.mark.asyncio
    async def test_list_instances_filters_prefix_per_zone(self):
        from google.cloud import compute_v1

        listing = [
            compute_v1.Instance(
                name="cosmos-sge-mm",
                status="RUNNING",
                network_interfaces=[
                    compute_v1.NetworkInterface(
                        network_i_p="10.0.0.2",
                        access_configs=[compute_v1.AccessConfig(nat_i_p="34.1.2.3")],
                    ),
                ],
            ),
            compute_v1.Instance(name="cosmos-sgeother", status="RUNNING"),
        ]
        instances = FakeClient(listing=listing)
        provider = _provider(instances=instances)
        result = await provider.list_instances("cosmos-sge", ["us-central1-b", "us-central1-a"])
        await provider.close()

        assert [r.zone for r in result] == ["us-central1-b", "us-central1-a"]
        summary = result[0]
        assert (summary.name, summary.status) == ("cosmos-sge-mm", "RUNNING")
        assert (summary.internal_ip, summary.external_ip) == ("10.0.0.2", "34.1.2.3")
        assert [req.filter for _, req in instances.requests] == ["name eq 'cosmos-sge-.*'"] * 2


class TestResolveProject:
    def test_explicit(self):
        assert _resolve_project("explicit") == "explicit"

    def test_env(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "from-env")
        assert _resolve_project(None) == "from-env"

    def test_nothing_found(self, monkeypatch):
        import google.auth
        from google.auth.exceptions import DefaultCredentialsError

        def no_credentials():
            raise DefaultCredentialsError("none")

        monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)
        monkeypatch.delenv("GCLOUD_PROJECT", raising=False)
        monkeypatch.setattr(google.auth, "default", no_credentials)
        with pytest.raises(ConfigurationError, match="No GCP project found"):
            _resolve_project(None)


class TestConfig:
    def test_is_provider_config(self):
        assert isinstance(GCP(), ProviderConfig)
        assert GCP().type == "gcp"
