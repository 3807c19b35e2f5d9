from __future__ import annotations

import pytest

from sgecluster.controller import ClusterController, Operation, Verb
from sgecluster.core.exceptions import ProviderError, UsageError


class TestOperation:
    @pytest.mark.parametrize(
        ("token", "verb", "full"),
        [
            ("up", Verb.UP, False),
            ("up-full", Verb.UP, True),
            ("down", Verb.DOWN, False),
            ("down-full", Verb.DOWN, True),
        ],
    )
    def test_parse(self, token, verb, full):
        op = Operation.parse(token)
        assert (op.verb, op.full) == (verb, full)
        assert str(op) == token

    @pytest.mark.parametrize("token", [None, "", "sideways", "up-fully", "-full", "UP"])
    def test_parse_rejects(self, token):
        with pytest.raises(UsageError, match="Usage: sgecluster"):
            Operation.parse(token)


class TestUp:
    @pytest.mark.asyncio
    async def test_up_full_call_sequence(self, provider, spec):
        instances = await ClusterController(spec, provider).run(Operation.parse("up-full"))

        master_disks = [c for c in provider.ops("create_disk") if c.name.startswith("cosmos-sge-mm")]
        execution_disks = [c for c in provider.ops("create_disk") if "-eh-" in c.name]
        assert len(master_disks) == 3
        assert len(execution_disks) == 3 * 2

        creates = provider.ops("create_instance")
        assert [c.name for c in creates] == [
            "cosmos-sge-mm", "cosmos-sge-eh-1", "cosmos-sge-eh-2", "cosmos-sge-eh-3",
        ]
        assert len(creates[0].request.disks) == 3
        for call in creates[1:]:
            names = [d.name for d in call.request.disks]
            assert names == [call.name, f"{call.name}-data", "cosmos-sge-mm-resource"]
            assert call.request.disks[-1].read_only

        (listing,) = provider.ops("list_instances")
        assert listing.name == "cosmos-sge"
        assert provider.calls[-1] is listing
        assert len(instances) == 4

    @pytest.mark.asyncio
    async def test_up_makes_no_disk_calls(self, provider, spec):
        await ClusterController(spec, provider).run(Operation.parse("up"))
        assert provider.ops("create_disk") == []
        assert len(provider.ops("create_instance")) == 4

    @pytest.mark.asyncio
    async def test_masters_created_before_executions(self, provider, spec_factory):
        spec = spec_factory(master_count=2, execution_count=2)
        await ClusterController(spec, provider).up(full=False)
        assert provider.names("create_instance") == [
            "cosmos-sge-mm-0", "cosmos-sge-mm-1", "cosmos-sge-eh-1", "cosmos-sge-eh-2",
        ]

    @pytest.mark.asyncio
    async def test_creation_failure_aborts(self, provider, spec):
        provider.failing.add("cosmos-sge-eh-2")
        with pytest.raises(ProviderError):
            await ClusterController(spec, provider).run(Operation.parse("up"))
        assert provider.names("create_instance")[-1] == "cosmos-sge-eh-2"
        assert provider.ops("list_instances") == []


class TestDown:
    @pytest.mark.asyncio
    async def test_down_deletes_instances_only(self, provider, spec):
        result = await ClusterController(spec, provider).run(Operation.parse("down"))

        assert result == ()
        assert provider.ops("delete_disk") == []
        assert provider.names("delete_instance") == [
            "cosmos-sge-eh-1", "cosmos-sge-eh-2", "cosmos-sge-eh-3", "cosmos-sge-mm",
        ]

    @pytest.mark.asyncio
    async def test_down_full_deletes_disks(self, provider, spec):
        await ClusterController(spec, provider).run(Operation.parse("down-full"))
        assert len(provider.ops("delete_disk")) == 3 * 2 + 3

    @pytest.mark.asyncio
    async def test_down_is_repeatable(self, provider, spec):
        controller = ClusterController(spec, provider)
        await controller.run(Operation.parse("down-full"))
        provider.missing.update(c.name for c in provider.calls)
        await controller.run(Operation.parse("down-full"))
        assert len(provider.ops("delete_instance")) == 8
