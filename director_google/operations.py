"""Reconciliation of pending asynchronous Google operations.

Every mutation against Compute Engine or Cloud SQL returns an operation that
completes later. ``poll_pending_operations`` drives a batch of them to a
terminal state with Fibonacci backoff, recording every problem in the caller's
accumulator instead of raising.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Collection, Iterator, Sequence
from dataclasses import dataclass

from loguru import logger

from director_google.errors import ApiCallError
from director_google.spi import PluginExceptionConditionAccumulator

log = logger.bind(component="poller")

DONE_STATE: frozenset[str] = frozenset({"DONE"})
RUNNING_OR_DONE_STATE: frozenset[str] = frozenset({"RUNNING", "DONE"})

DEFAULT_POLLING_TIMEOUT_SECONDS = 180
DEFAULT_MAX_POLLING_INTERVAL_SECONDS = 8


@dataclass(frozen=True, slots=True)
class PendingOperation:
    """Handle to a submitted operation.

    ``target_id`` is the name of the resource the operation acts on;
    ``location`` is the zone for zonal Compute Engine operations.
    """

    name: str
    target_id: str
    location: str | None = None


@dataclass(frozen=True, slots=True)
class OperationSnapshot:
    name: str
    status: str
    errors: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class PollingPolicy:
    timeout_seconds: int = DEFAULT_POLLING_TIMEOUT_SECONDS
    max_interval_seconds: int = DEFAULT_MAX_POLLING_INTERVAL_SECONDS


type FetchOperation = Callable[[PendingOperation], Awaitable[OperationSnapshot]]
type Sleep = Callable[[float], Awaitable[object]]


def fibonacci_intervals(max_interval: int) -> Iterator[int]:
    """Yield 1, 1, 2, 3, 5, 8, ... capped at ``max_interval``, forever."""
    interval, increment = 1, 0
    while True:
        yield interval
        interval, increment = min(interval + increment, max_interval), interval


async def poll_pending_operations(
    pending_operations: Sequence[PendingOperation],
    acceptable_states: Collection[str],
    fetch: FetchOperation,
    accumulator: PluginExceptionConditionAccumulator,
    *,
    policy: PollingPolicy = PollingPolicy(),
    sleep: Sleep = asyncio.sleep,
) -> list[str]:
    """Poll operations until each reaches an acceptable state or time runs out.

    Args:
        pending_operations: Operations to drive. The sequence is not modified.
        acceptable_states: Statuses that count as terminal for this batch.
        fetch: Returns a fresh snapshot of one operation.
        accumulator: Receives one error per reported operation error, per
            transient fetch failure, and a single entry on timeout.
        policy: Timeout and backoff cap.
        sleep: Awaited between ticks.

    Returns:
        Target ids of operations that reached an acceptable state without
        reporting any error, in completion order.
    """
    pending = list(pending_operations)
    successful: list[str] = []
    polled_seconds = 0
    intervals = fibonacci_intervals(policy.max_interval_seconds)

    while pending:
        interval = next(intervals)
        await sleep(interval)
        polled_seconds += interval

        snapshots = await asyncio.gather(
            *(fetch(op) for op in pending), return_exceptions=True,
        )

        still_pending: list[PendingOperation] = []
        for op, snapshot in zip(pending, snapshots, strict=True):
            match snapshot:
                case ApiCallError() as e:
                    accumulator.add_error(None, e.message)
                    still_pending.append(op)
                case BaseException() as e:
                    raise e
                case OperationSnapshot(errors=errors, status=status):
                    for message in errors:
                        accumulator.add_error(None, message)
                    if status in acceptable_states:
                        if not errors:
                            successful.append(op.target_id)
                    else:
                        still_pending.append(op)
        pending = still_pending

        if pending and polled_seconds > policy.timeout_seconds:
            names = ", ".join(op.name for op in pending)
            accumulator.add_error(
                None,
                f"Exceeded timeout of '{policy.timeout_seconds}' seconds while polling "
                f"for pending operations to complete: [{names}]",
            )
            log.warning(
                "Gave up on {count} operations after {seconds}s",
                count=len(pending), seconds=polled_seconds,
            )
            break

    return successful
