from __future__ import annotations

import asyncio
from itertools import islice

import pytest

from director_google.errors import ResourceNotFound, TransientApiError
from director_google.operations import (
    DONE_STATE,
    RUNNING_OR_DONE_STATE,
    PendingOperation,
    PollingPolicy,
    fibonacci_intervals,
    poll_pending_operations,
)
from director_google.spi import PluginExceptionConditionAccumulator
from fakes import RecordingSleep, ScriptedFetch, snapshot

pytestmark = [pytest.mark.xdist_group("unit")]


def _op(name: str) -> PendingOperation:
    return PendingOperation(name=f"op-{name}", target_id=name)


class TestFibonacciIntervals:
    def test_sequence_is_capped(self):
        assert list(islice(fibonacci_intervals(8), 9)) == [1, 1, 2, 3, 5, 8, 8, 8, 8]

    def test_small_cap(self):
        assert list(islice(fibonacci_intervals(2), 5)) == [1, 1, 2, 2, 2]

    def test_cap_of_one(self):
        assert list(islice(fibonacci_intervals(1), 4)) == [1, 1, 1, 1]


class TestPollPendingOperations:
    @pytest.mark.asyncio
    async def test_empty_set_returns_without_sleeping(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({})

        result = await poll_pending_operations([], DONE_STATE, fetch, acc, sleep=sleep)

        assert result == []
        assert sleep.calls == []
        assert fetch.calls == []
        assert len(acc) == 0

    @pytest.mark.asyncio
    async def test_done_on_first_poll(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({"op-x1": [snapshot("op-x1")]})

        result = await poll_pending_operations([_op("x1")], DONE_STATE, fetch, acc, sleep=sleep)

        assert result == ["x1"]
        assert sleep.calls == [1]
        assert len(acc) == 0

    @pytest.mark.asyncio
    async def test_backoff_follows_fibonacci_until_cap(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        running = snapshot("op-a", "RUNNING")
        fetch = ScriptedFetch({"op-a": [running] * 7 + [snapshot("op-a")]})

        result = await poll_pending_operations([_op("a")], DONE_STATE, fetch, acc, sleep=sleep)

        assert result == ["a"]
        assert sleep.calls == [1, 1, 2, 3, 5, 8, 8, 8]

    @pytest.mark.asyncio
    async def test_running_is_acceptable_for_deletes(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({"op-a": [snapshot("op-a", "RUNNING")]})

        result = await poll_pending_operations(
            [_op("a")], RUNNING_OR_DONE_STATE, fetch, acc, sleep=sleep,
        )

        assert result == ["a"]

    @pytest.mark.asyncio
    async def test_operations_finish_independently(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({
            "op-a": [snapshot("op-a")],
            "op-b": [snapshot("op-b", "PENDING"), snapshot("op-b", "RUNNING"), snapshot("op-b")],
        })

        result = await poll_pending_operations(
            [_op("a"), _op("b")], DONE_STATE, fetch, acc, sleep=sleep,
        )

        assert result == ["a", "b"]
        assert fetch.calls == ["op-a", "op-b", "op-b", "op-b"]
        assert sleep.calls == [1, 1, 2]

    @pytest.mark.asyncio
    async def test_done_with_errors_is_not_successful(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({
            "op-a": [snapshot("op-a")],
            "op-b": [snapshot("op-b", "DONE", "quota exceeded", "disk unavailable")],
        })

        result = await poll_pending_operations(
            [_op("a"), _op("b")], DONE_STATE, fetch, acc, sleep=sleep,
        )

        assert result == ["a"]
        assert acc.errors() == ["quota exceeded", "disk unavailable"]

    @pytest.mark.asyncio
    async def test_transient_fetch_failure_is_retried(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({
            "op-a": [TransientApiError("connection reset"), snapshot("op-a")],
        })

        result = await poll_pending_operations([_op("a")], DONE_STATE, fetch, acc, sleep=sleep)

        assert result == ["a"]
        assert acc.errors() == ["connection reset"]
        assert fetch.calls == ["op-a", "op-a"]

    @pytest.mark.asyncio
    async def test_api_error_keeps_operation_pending(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({"op-a": [ResourceNotFound("gone"), snapshot("op-a")]})

        result = await poll_pending_operations([_op("a")], DONE_STATE, fetch, acc, sleep=sleep)

        assert result == ["a"]
        assert acc.errors() == ["gone"]

    @pytest.mark.asyncio
    async def test_unexpected_exception_propagates(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({"op-a": [RuntimeError("bug")]})

        with pytest.raises(RuntimeError, match="bug"):
            await poll_pending_operations([_op("a")], DONE_STATE, fetch, acc, sleep=sleep)

    @pytest.mark.asyncio
    async def test_timeout_reports_every_pending_operation_once(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({
            "op-a": [snapshot("op-a", "RUNNING")],
            "op-b": [snapshot("op-b", "RUNNING")],
            "op-c": [snapshot("op-c")],
        })
        policy = PollingPolicy(timeout_seconds=10, max_interval_seconds=8)

        result = await poll_pending_operations(
            [_op("a"), _op("b"), _op("c")], DONE_STATE, fetch, acc, policy=policy, sleep=sleep,
        )

        assert result == ["c"]
        assert sleep.calls == [1, 1, 2, 3, 5]
        assert acc.errors() == [
            "Exceeded timeout of '10' seconds while polling for pending operations "
            "to complete: [op-a, op-b]",
        ]

    @pytest.mark.asyncio
    async def test_timeout_is_strictly_exceeded(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({"op-a": [snapshot("op-a", "RUNNING")]})
        policy = PollingPolicy(timeout_seconds=4, max_interval_seconds=8)

        await poll_pending_operations([_op("a")], DONE_STATE, fetch, acc, policy=policy, sleep=sleep)

        # 1 + 1 + 2 == 4 is not past the timeout; the next tick is.
        assert sleep.calls == [1, 1, 2, 3]
        assert len(acc.errors()) == 1

    @pytest.mark.asyncio
    async def test_total_wait_is_bounded(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({"op-a": [snapshot("op-a", "PENDING")]})
        policy = PollingPolicy(timeout_seconds=180, max_interval_seconds=8)

        result = await poll_pending_operations(
            [_op("a")], DONE_STATE, fetch, acc, policy=policy, sleep=sleep,
        )

        assert result == []
        assert policy.timeout_seconds < sleep.total <= policy.timeout_seconds + 8

    @pytest.mark.asyncio
    async def test_input_sequence_is_not_modified(self, sleep: RecordingSleep):
        acc = PluginExceptionConditionAccumulator()
        ops = [_op("a")]
        fetch = ScriptedFetch({"op-a": [snapshot("op-a")]})

        await poll_pending_operations(ops, DONE_STATE, fetch, acc, sleep=sleep)

        assert ops == [_op("a")]

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        acc = PluginExceptionConditionAccumulator()
        fetch = ScriptedFetch({"op-a": [snapshot("op-a", "RUNNING")]})

        task = asyncio.create_task(
            poll_pending_operations([_op("a")], DONE_STATE, fetch, acc, sleep=asyncio.sleep),
        )
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
