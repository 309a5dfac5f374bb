"""Logging setup for the plugin.

Modules log through loguru with bound ``provider``/``component`` context.
Logging stays disabled until the launcher enables it, so hosts that
configure loguru themselves are left alone.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from loguru import logger

type LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "TRACE"]

PACKAGE = "director_google"

FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line}{extra[_ctx]} - {message}"
)


def _with_context(record: Any) -> None:
    extra = record["extra"]
    parts = [f"{k}={extra[k]}" for k in ("provider", "component") if k in extra]
    extra["_ctx"] = f" [{' '.join(parts)}]" if parts else ""


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Where plugin logs go.

    Attributes:
        level: Minimum level for the stderr sink. The file sink takes everything.
        file: Log file path; ``None`` disables the file sink.
        console: Whether to log to stderr.
    """

    level: LogLevel = "INFO"
    file: str | None = None
    console: bool = True


def setup_logging(config: LogConfig) -> list[int]:
    """Enable plugin logging and return handler ids for ``teardown_logging``."""
    logger.enable(PACKAGE)
    logger.configure(patcher=_with_context)
    handler_ids: list[int] = []

    if config.console:
        handler_ids.append(logger.add(
            sys.stderr, level=config.level, format=FORMAT, colorize=True, filter=PACKAGE,
        ))

    if config.file:
        Path(config.file).parent.mkdir(parents=True, exist_ok=True)
        handler_ids.append(logger.add(
            config.file, level="DEBUG", format=FORMAT, filter=PACKAGE, diagnose=False,
        ))

    return handler_ids


def teardown_logging(handler_ids: list[int]) -> None:
    for hid in handler_ids:
        logger.remove(hid)
    logger.disable(PACKAGE)
