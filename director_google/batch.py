"""Batch allocation, teardown and deletion shared by both resource providers.

Providers describe how to submit and observe operations for one kind of
resource through ``ResourceOperations``; the functions here own the
bookkeeping: which names succeeded, what went into the accumulator, and when
to compensate or raise.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from loguru import logger

from director_google.errors import ApiCallError, ResourceConflict, ResourceNotFound
from director_google.operations import (
    DONE_STATE,
    RUNNING_OR_DONE_STATE,
    FetchOperation,
    PendingOperation,
    PollingPolicy,
    Sleep,
    poll_pending_operations,
)
from director_google.spi import (
    PluginExceptionConditionAccumulator,
    PluginExceptionDetails,
    UnrecoverableProviderError,
)

log = logger.bind(component="batch")

type Submit = Callable[[str], Awaitable[PendingOperation]]


@dataclass(frozen=True, slots=True)
class ResourceOperations:
    """How to mutate and observe one kind of named resource.

    Attributes:
        kind: Human readable resource kind used in log messages.
        create: Submits creation of the named resource.
        delete: Submits deletion of the named resource.
        fetch: Returns a fresh snapshot of a pending operation.
        policy: Polling timeout and backoff cap.
        sleep: Awaited between polling ticks.
    """

    kind: str
    create: Submit
    delete: Submit
    fetch: FetchOperation
    policy: PollingPolicy = field(default_factory=PollingPolicy)
    sleep: Sleep = asyncio.sleep

    async def poll(
        self,
        pending: Sequence[PendingOperation],
        acceptable_states: Iterable[str],
        accumulator: PluginExceptionConditionAccumulator,
    ) -> list[str]:
        return await poll_pending_operations(
            pending,
            frozenset(acceptable_states),
            self.fetch,
            accumulator,
            policy=self.policy,
            sleep=self.sleep,
        )


@dataclass(frozen=True, slots=True)
class DependentStep:
    """Follow-up operation run on every created resource (e.g. creating a user)."""

    description: str
    submit: Submit
    fetch: FetchOperation


async def _submit_all(
    submit: Submit, names: Sequence[str],
) -> list[PendingOperation | BaseException]:
    return await asyncio.gather(*(submit(name) for name in names), return_exceptions=True)


def _reraise_unexpected(result: object) -> None:
    if isinstance(result, BaseException) and not isinstance(result, ApiCallError):
        raise result


async def allocate_resources(
    ops: ResourceOperations,
    names: Sequence[str],
    min_count: int,
    *,
    dependent: DependentStep | None = None,
) -> list[str]:
    """Create ``names``; enforce ``min_count`` or tear down and raise.

    Returns:
        Names of resources that were fully provisioned. Pre-existing resources
        (creation reported a conflict) count as provisioned.

    Raises:
        UnrecoverableProviderError: Fewer than ``min_count`` resources were
            provisioned. Everything whose creation was submitted has been
            torn down and the details carry every recorded condition.
    """
    accumulator = PluginExceptionConditionAccumulator()
    created: list[str] = []
    creations: list[PendingOperation] = []

    for name, result in zip(names, await _submit_all(ops.create, names), strict=True):
        _reraise_unexpected(result)
        match result:
            case ResourceConflict():
                log.info("{kind} '{name}' already exists.", kind=ops.kind, name=name)
                created.append(name)
            case ApiCallError() as e:
                accumulator.add_error(None, e.message)
            case PendingOperation():
                creations.append(result)

    created.extend(await ops.poll(creations, DONE_STATE, accumulator))

    if dependent is None:
        successful = created
    else:
        successful = await _run_dependent_step(ops, dependent, created, accumulator)

    if len(successful) < min_count:
        log.error(
            "Provisioned {count} instances out of {total}. minCount is {min_count}. "
            "Tearing down provisioned instances.",
            count=len(successful), total=len(names), min_count=min_count,
        )
        await tear_down_resources(ops, [op.target_id for op in creations], accumulator)
        raise UnrecoverableProviderError(
            "Problem allocating instances.",
            PluginExceptionDetails.from_accumulator(accumulator),
        )

    if len(successful) < len(names):
        log.warning(
            "Provisioned {count} instances out of {total}. minCount is {min_count}.",
            count=len(successful), total=len(names), min_count=min_count,
        )
        log_conditions(accumulator)

    return successful


async def _run_dependent_step(
    ops: ResourceOperations,
    dependent: DependentStep,
    created: Sequence[str],
    accumulator: PluginExceptionConditionAccumulator,
) -> list[str]:
    pending: list[PendingOperation] = []
    for name, result in zip(created, await _submit_all(dependent.submit, created), strict=True):
        _reraise_unexpected(result)
        if isinstance(result, ApiCallError):
            log.warning(
                "Could not {step} for '{name}': {error}",
                step=dependent.description, name=name, error=result.message,
            )
            accumulator.add_error(None, result.message)
        else:
            pending.append(result)

    return await poll_pending_operations(
        pending, DONE_STATE, dependent.fetch, accumulator,
        policy=ops.policy, sleep=ops.sleep,
    )


async def tear_down_resources(
    ops: ResourceOperations,
    names: Sequence[str],
    accumulator: PluginExceptionConditionAccumulator,
) -> None:
    """Best-effort compensating delete. Records problems, never raises for API errors."""
    deletions: list[PendingOperation] = []

    for name, result in zip(names, await _submit_all(ops.delete, names), strict=True):
        _reraise_unexpected(result)
        match result:
            case ResourceNotFound():
                continue
            case ApiCallError() as e:
                accumulator.add_error(None, e.message)
            case PendingOperation():
                deletions.append(result)

    successful = await ops.poll(deletions, DONE_STATE, accumulator)
    if len(successful) < len(deletions):
        accumulator.add_error(
            None,
            f"{len(successful)} of the {len(deletions)} tear down operations "
            "completed successfully.",
        )


async def delete_resources(ops: ResourceOperations, names: Sequence[str]) -> None:
    """Delete ``names``; absent or already-deleting resources are not errors.

    Raises:
        UnrecoverableProviderError: Any submission or operation error was recorded.
    """
    accumulator = PluginExceptionConditionAccumulator()
    deletions: list[PendingOperation] = []

    for name, result in zip(names, await _submit_all(ops.delete, names), strict=True):
        _reraise_unexpected(result)
        match result:
            case ResourceNotFound():
                log.info(
                    "Attempted to delete {kind} '{name}', but it does not exist.",
                    kind=ops.kind, name=name,
                )
            case ResourceConflict():
                log.info(
                    "Attempted to delete {kind} '{name}', but it is already in the "
                    "process of being deleted.",
                    kind=ops.kind, name=name,
                )
            case ApiCallError() as e:
                accumulator.add_error(None, e.message)
            case PendingOperation():
                deletions.append(result)

    await ops.poll(deletions, RUNNING_OR_DONE_STATE, accumulator)

    if accumulator.has_error():
        raise UnrecoverableProviderError(
            "Problem deleting instances.",
            PluginExceptionDetails.from_accumulator(accumulator),
        )


NOT_FOUND_MESSAGES: Mapping[type[ApiCallError], str] = {
    ResourceNotFound: "{kind} '{name}' not found.",
}


async def find_resources[R](
    names: Sequence[str],
    get: Callable[[str], Awaitable[R]],
    kind: str,
    not_found: Mapping[type[ApiCallError], str] = NOT_FOUND_MESSAGES,
) -> dict[str, R]:
    """Look up every name; absent resources are omitted, other errors are fatal.

    ``not_found`` maps each error class meaning "does not exist" to the message
    logged when it is seen.
    """
    results = await asyncio.gather(*(get(name) for name in names), return_exceptions=True)

    found: dict[str, R] = {}
    for name, result in zip(names, results, strict=True):
        match result:
            case ApiCallError() as e if type(e) in not_found:
                log.info(not_found[type(e)], kind=kind, name=name)
            case ApiCallError() as e:
                raise UnrecoverableProviderError(
                    f"Problem looking up {kind} '{name}': {e.message}",
                ) from e
            case BaseException():
                raise result
            case _:
                found[name] = result
    return found


def log_conditions(accumulator: PluginExceptionConditionAccumulator) -> None:
    for key, conditions in accumulator.conditions_by_key().items():
        for condition in conditions:
            if key is None:
                log.warning("({type}) {message}", type=condition.type.value, message=condition.message)
            else:
                log.warning(
                    "({type}) {key}: {message}",
                    type=condition.type.value, key=key, message=condition.message,
                )
