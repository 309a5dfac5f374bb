"""Shared configuration checks."""

from __future__ import annotations

import re
from dataclasses import dataclass

from director_google.spi import (
    INSTANCE_NAME_PREFIX,
    Configured,
    PluginExceptionConditionAccumulator,
)

PREFIX_MIN_LENGTH = 1
PREFIX_MAX_LENGTH = 26
PREFIX_PATTERN = re.compile(r"[a-z][-a-z0-9]*")


@dataclass(frozen=True, slots=True)
class PrefixMessages:
    missing: str
    length: str
    pattern: str

    @classmethod
    def for_subject(cls, subject: str) -> PrefixMessages:
        return cls(
            missing=f"{subject} name prefix must be provided.",
            length=(
                f"{subject} name prefix must be between "
                f"{PREFIX_MIN_LENGTH} and {PREFIX_MAX_LENGTH} characters."
            ),
            pattern=(
                f"{subject} name prefix must follow this pattern: "
                "The first character must be a lowercase letter, and all following "
                "characters must be a dash, lowercase letter, or digit."
            ),
        )


COMPUTE_PREFIX_MESSAGES = PrefixMessages.for_subject("Instance")
SQL_PREFIX_MESSAGES = PrefixMessages.for_subject("Database instance")


def check_prefix(
    configuration: Configured,
    accumulator: PluginExceptionConditionAccumulator,
    messages: PrefixMessages,
) -> bool:
    """Record at most one error against ``instanceNamePrefix``; return whether it is valid."""
    key = INSTANCE_NAME_PREFIX.config_key
    prefix = configuration.get_configuration_value(INSTANCE_NAME_PREFIX)

    if prefix is None:
        accumulator.add_error(key, messages.missing)
        return False
    if not PREFIX_MIN_LENGTH <= len(prefix) <= PREFIX_MAX_LENGTH:
        accumulator.add_error(key, messages.length)
        return False
    if not PREFIX_PATTERN.fullmatch(prefix):
        accumulator.add_error(key, messages.pattern)
        return False
    return True


def is_valid_prefix(configuration: Configured, messages: PrefixMessages) -> bool:
    return check_prefix(configuration, PluginExceptionConditionAccumulator(), messages)
