from __future__ import annotations

import pytest
from loguru import logger

from director_google.batch import (
    DependentStep,
    allocate_resources,
    delete_resources,
    find_resources,
    log_conditions,
)
from director_google.errors import (
    AccessDenied,
    ApiCallError,
    ResourceConflict,
    ResourceNotFound,
    TransientApiError,
)
from director_google.operations import PollingPolicy
from director_google.spi import PluginExceptionConditionAccumulator, UnrecoverableProviderError
from fakes import FakeResources, RecordingSleep

pytestmark = [pytest.mark.xdist_group("unit")]


class TestAllocateResources:
    @pytest.mark.asyncio
    async def test_single_instance_done_on_first_poll(self, sleep: RecordingSleep):
        resources = FakeResources()

        result = await allocate_resources(resources.operations(sleep), ["prefix-x1"], 1)

        assert result == ["prefix-x1"]
        assert resources.fetched == ["create-prefix-x1"]
        assert resources.deleted == []

    @pytest.mark.asyncio
    async def test_conflict_counts_as_created_without_polling(self, sleep: RecordingSleep):
        resources = FakeResources(create_errors={"prefix-x1": ResourceConflict("exists", 409)})

        result = await allocate_resources(
            resources.operations(sleep), ["prefix-x1", "prefix-x2"], 2,
        )

        assert result == ["prefix-x1", "prefix-x2"]
        assert resources.fetched == ["create-prefix-x2"]

    @pytest.mark.asyncio
    async def test_repeated_allocate_is_idempotent(self, sleep: RecordingSleep):
        names = ["prefix-a", "prefix-b"]
        first = FakeResources()
        second = FakeResources(
            create_errors={name: ResourceConflict("exists", 409) for name in names},
        )

        assert await allocate_resources(first.operations(sleep), names, 2) == names
        sleep.calls.clear()
        assert await allocate_resources(second.operations(sleep), names, 2) == names
        assert second.fetched == []
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_partial_success_above_quota_returns(self, sleep: RecordingSleep):
        resources = FakeResources(create_errors={"c": ApiCallError("quota exceeded", 400)})

        result = await allocate_resources(resources.operations(sleep), ["a", "b", "c"], 2)

        assert result == ["a", "b"]
        assert resources.deleted == []

    @pytest.mark.asyncio
    async def test_quota_miss_tears_down_and_raises(self, sleep: RecordingSleep):
        resources = FakeResources(operation_errors={"create-c": ["boom"]})

        with pytest.raises(UnrecoverableProviderError, match="Problem allocating instances.") as exc:
            await allocate_resources(resources.operations(sleep), ["a", "b", "c"], 3)

        assert sorted(resources.deleted) == ["a", "b", "c"]
        assert exc.value.details.messages() == ["boom"]

    @pytest.mark.asyncio
    async def test_teardown_problems_are_appended(self, sleep: RecordingSleep):
        resources = FakeResources(
            operation_errors={"create-c": ["boom"], "delete-b": ["disk in use"]},
            delete_errors={"a": ApiCallError("denied", 400)},
        )

        with pytest.raises(UnrecoverableProviderError) as exc:
            await allocate_resources(resources.operations(sleep), ["a", "b", "c"], 3)

        assert exc.value.details.messages() == [
            "boom",
            "denied",
            "disk in use",
            "1 of the 2 tear down operations completed successfully.",
        ]

    @pytest.mark.asyncio
    async def test_teardown_ignores_already_missing(self, sleep: RecordingSleep):
        resources = FakeResources(
            operation_errors={"create-b": ["boom"]},
            delete_errors={"b": ResourceNotFound("not found", 404)},
        )

        with pytest.raises(UnrecoverableProviderError) as exc:
            await allocate_resources(resources.operations(sleep), ["a", "b"], 2)

        assert exc.value.details.messages() == ["boom"]

    @pytest.mark.asyncio
    async def test_teardown_spares_preexisting_resources(self, sleep: RecordingSleep):
        resources = FakeResources(
            create_errors={"a": ResourceConflict("exists", 409)},
            operation_errors={"create-b": ["boom"]},
        )

        with pytest.raises(UnrecoverableProviderError):
            await allocate_resources(resources.operations(sleep), ["a", "b"], 2)

        assert resources.deleted == ["b"]

    @pytest.mark.asyncio
    async def test_submission_failures_are_accumulated(self, sleep: RecordingSleep):
        resources = FakeResources(
            create_errors={"a": TransientApiError("backend error", 503)},
        )

        with pytest.raises(UnrecoverableProviderError) as exc:
            await allocate_resources(resources.operations(sleep), ["a", "b"], 2)

        assert exc.value.details.messages() == ["backend error"]
        assert resources.deleted == ["b"]

    @pytest.mark.asyncio
    async def test_unexpected_submission_error_propagates(self, sleep: RecordingSleep):
        resources = FakeResources(create_errors={"a": RuntimeError("bug")})

        with pytest.raises(RuntimeError, match="bug"):
            await allocate_resources(resources.operations(sleep), ["a"], 1)

    @pytest.mark.asyncio
    async def test_min_count_zero_never_raises(self, sleep: RecordingSleep):
        resources = FakeResources(operation_errors={"create-a": ["boom"]})

        assert await allocate_resources(resources.operations(sleep), ["a"], 0) == []
        assert resources.deleted == []

    @pytest.mark.asyncio
    async def test_creation_timeout_tears_down_and_raises(self, sleep: RecordingSleep):
        resources = FakeResources(stuck=["create-b"])
        policy = PollingPolicy(timeout_seconds=5)

        with pytest.raises(UnrecoverableProviderError) as exc:
            await allocate_resources(resources.operations(sleep, policy), ["a", "b"], 2)

        assert sorted(resources.deleted) == ["a", "b"]
        assert exc.value.details.messages() == [
            "Exceeded timeout of '5' seconds while polling for pending operations "
            "to complete: [create-b]",
        ]
        assert sleep.calls[:4] == [1, 1, 2, 3]


class TestDependentStep:
    @pytest.mark.asyncio
    async def test_failed_step_excludes_resource(self, sleep: RecordingSleep):
        resources = FakeResources()
        users = FakeResources(operation_errors={"create-b": ["bad password"]})
        step = DependentStep("create master user", users.create, users.fetch)

        result = await allocate_resources(resources.operations(sleep), ["a", "b"], 1, dependent=step)

        assert result == ["a"]
        assert users.created == ["a", "b"]

    @pytest.mark.asyncio
    async def test_failed_step_counts_against_quota(self, sleep: RecordingSleep):
        resources = FakeResources()
        users = FakeResources(create_errors={"b": ApiCallError("invalid user", 400)})
        step = DependentStep("create master user", users.create, users.fetch)

        with pytest.raises(UnrecoverableProviderError) as exc:
            await allocate_resources(resources.operations(sleep), ["a", "b"], 2, dependent=step)

        assert sorted(resources.deleted) == ["a", "b"]
        assert exc.value.details.messages() == ["invalid user"]

    @pytest.mark.asyncio
    async def test_step_runs_only_on_created_resources(self, sleep: RecordingSleep):
        resources = FakeResources(operation_errors={"create-b": ["boom"]})
        users = FakeResources()
        step = DependentStep("create master user", users.create, users.fetch)

        result = await allocate_resources(resources.operations(sleep), ["a", "b"], 1, dependent=step)

        assert result == ["a"]
        assert users.created == ["a"]


class TestDeleteResources:
    @pytest.mark.asyncio
    async def test_deletes_every_name(self, sleep: RecordingSleep):
        resources = FakeResources()

        await delete_resources(resources.operations(sleep), ["a", "b"])

        assert resources.deleted == ["a", "b"]

    @pytest.mark.asyncio
    async def test_running_deletion_is_enough(self, sleep: RecordingSleep):
        resources = FakeResources(stuck=["delete-a"])

        await delete_resources(resources.operations(sleep), ["a"])

        assert sleep.calls == [1]

    @pytest.mark.asyncio
    async def test_tolerates_not_found_and_in_progress(self, sleep: RecordingSleep):
        resources = FakeResources(delete_errors={
            "a": ResourceNotFound("not found", 404),
            "b": ResourceConflict("being deleted", 409),
        })

        await delete_resources(resources.operations(sleep), ["a", "b"])

        assert resources.fetched == []

    @pytest.mark.asyncio
    async def test_other_submission_errors_raise(self, sleep: RecordingSleep):
        resources = FakeResources(delete_errors={"a": AccessDenied("forbidden", 403)})

        with pytest.raises(UnrecoverableProviderError, match="Problem deleting instances.") as exc:
            await delete_resources(resources.operations(sleep), ["a", "b"])

        assert exc.value.details.messages() == ["forbidden"]
        assert resources.fetched == ["delete-b"]

    @pytest.mark.asyncio
    async def test_operation_errors_raise(self, sleep: RecordingSleep):
        resources = FakeResources(operation_errors={"delete-a": ["resource in use"]})

        with pytest.raises(UnrecoverableProviderError) as exc:
            await delete_resources(resources.operations(sleep), ["a"])

        assert exc.value.details.messages() == ["resource in use"]

    @pytest.mark.asyncio
    async def test_deletion_that_never_starts_times_out(self, sleep: RecordingSleep):
        resources = FakeResources(queued=["delete-a"])
        policy = PollingPolicy(timeout_seconds=2)

        with pytest.raises(UnrecoverableProviderError, match="Problem deleting instances.") as exc:
            await delete_resources(resources.operations(sleep, policy), ["a", "b"])

        assert exc.value.details.messages() == [
            "Exceeded timeout of '2' seconds while polling for pending operations "
            "to complete: [delete-a]",
        ]
        assert sleep.calls == [1, 1, 2]


class TestFindResources:
    @pytest.mark.asyncio
    async def test_missing_resources_are_omitted(self):
        async def get(name: str) -> dict:
            if name == "b":
                raise ResourceNotFound("not found", 404)
            return {"name": name}

        result = await find_resources(["a", "b", "c"], get, "Instance")

        assert result == {"a": {"name": "a"}, "c": {"name": "c"}}

    @pytest.mark.asyncio
    async def test_other_api_errors_raise(self):
        async def get(name: str) -> dict:
            raise AccessDenied("forbidden", 403)

        with pytest.raises(UnrecoverableProviderError, match="Problem looking up Instance 'a'"):
            await find_resources(["a"], get, "Instance")

    @pytest.mark.asyncio
    async def test_custom_not_found_classes(self):
        async def get(name: str) -> dict:
            raise AccessDenied("forbidden", 403)

        result = await find_resources(
            ["a"], get, "Database instance", {AccessDenied: "{kind} '{name}' not found."},
        )

        assert result == {}

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self):
        async def get(name: str) -> dict:
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError, match="bug"):
            await find_resources(["a"], get, "Instance")


class TestLogConditions:
    def test_logs_keyed_and_global_conditions(self):
        messages: list[str] = []
        logger.enable("director_google")
        sink = logger.add(messages.append, format="{message}", filter="director_google")
        try:
            acc = PluginExceptionConditionAccumulator()
            acc.add_error(None, "global problem")
            acc.add_warning("zone", "zone is far away")
            log_conditions(acc)
        finally:
            logger.remove(sink)
            logger.disable("director_google")

        assert [m.strip() for m in messages] == [
            "(ERROR) global problem",
            "(WARNING) zone: zone is far away",
        ]
