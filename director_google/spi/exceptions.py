"""Plugin exception taxonomy and the condition accumulator.

A single ``PluginExceptionConditionAccumulator`` is created per top-level
host call. Problems found along the way are recorded against the
configuration key they concern (``None`` for global conditions) and the call
decides at the end whether to raise.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum


class ConditionType(Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass(frozen=True, slots=True)
class PluginExceptionCondition:
    type: ConditionType
    message: str

    @property
    def is_error(self) -> bool:
        return self.type is ConditionType.ERROR


@dataclass(slots=True)
class PluginExceptionConditionAccumulator:
    _conditions: list[tuple[str | None, PluginExceptionCondition]] = field(default_factory=list)

    def add_error(self, key: str | None, message: str) -> None:
        self._conditions.append((key, PluginExceptionCondition(ConditionType.ERROR, message)))

    def add_warning(self, key: str | None, message: str) -> None:
        self._conditions.append((key, PluginExceptionCondition(ConditionType.WARNING, message)))

    def has_error(self) -> bool:
        return any(c.is_error for _, c in self._conditions)

    def conditions_by_key(self) -> dict[str | None, list[PluginExceptionCondition]]:
        grouped: dict[str | None, list[PluginExceptionCondition]] = defaultdict(list)
        for key, condition in self._conditions:
            grouped[key].append(condition)
        return dict(grouped)

    def errors(self, key: str | None = None) -> list[str]:
        return [c.message for k, c in self._conditions if k == key and c.is_error]

    def __len__(self) -> int:
        return len(self._conditions)


@dataclass(frozen=True, slots=True)
class PluginExceptionDetails:
    conditions_by_key: dict[str | None, list[PluginExceptionCondition]] = field(default_factory=dict)

    @classmethod
    def from_accumulator(cls, accumulator: PluginExceptionConditionAccumulator) -> PluginExceptionDetails:
        return cls(accumulator.conditions_by_key())

    def messages(self) -> list[str]:
        return [c.message for conditions in self.conditions_by_key.values() for c in conditions]


class ProviderError(Exception):
    """Base class for errors surfaced to the host."""

    def __init__(self, message: str, details: PluginExceptionDetails | None = None) -> None:
        super().__init__(message)
        self.details = details or PluginExceptionDetails()


class UnrecoverableProviderError(ProviderError):
    """The call failed and retrying it unchanged will not help."""


class TransientProviderError(ProviderError):
    """The call failed for a reason that may go away on retry."""


class InvalidCredentialsError(UnrecoverableProviderError):
    pass
