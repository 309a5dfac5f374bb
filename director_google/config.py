"""TOML-based plugin configuration.

Loads the bundled ``google.toml`` that ships with the package and deep-merges
an optional site ``google.toml`` from the plugin configuration directory on
top of it.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from director_google.operations import PollingPolicy

type RawConfig = dict[str, Any]

CONFIG_FILE_NAME = "google.toml"
BUNDLED_CONFIG_PATH = Path(__file__).with_name(CONFIG_FILE_NAME)

SQL_INTEGRATION_ENV = "DIRECTOR_ENABLE_GOOGLE_CLOUD_SQL_INTEGRATION"


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def load_config(
    *,
    config_dir: Path | None = None,
    bundled_path: Path | None = None,
) -> RawConfig:
    bundled = _read_toml(bundled_path or BUNDLED_CONFIG_PATH)
    site = _read_toml(config_dir / CONFIG_FILE_NAME) if config_dir else {}
    return _deep_merge(bundled, site)


def _polling(raw: Mapping[str, Any]) -> PollingPolicy:
    defaults = PollingPolicy()
    return PollingPolicy(
        timeout_seconds=int(raw.get("timeout_seconds", defaults.timeout_seconds)),
        max_interval_seconds=int(raw.get("max_interval_seconds", defaults.max_interval_seconds)),
    )


@dataclass(frozen=True, slots=True)
class GoogleConfig:
    """Plugin-wide settings resolved once at launch.

    Attributes:
        application_name: Reported to Google APIs in the user agent.
        application_version: Reported alongside ``application_name``.
        image_aliases: Short image names accepted in templates, mapped to image URLs.
        compute_polling: Polling policy for Compute Engine operations.
        sql_polling: Polling policy for Cloud SQL operations.
        sql_region_aliases: Cloud SQL region names whose Compute Engine name differs.
        sql_enabled: Whether the Cloud SQL resource provider is offered.
        thread_pool_size: Workers used to run the synchronous Google clients.
    """

    application_name: str = "Cloudera-Director-Google-Plugin"
    application_version: str = "2.0.0"
    image_aliases: Mapping[str, str] = field(default_factory=dict)
    compute_polling: PollingPolicy = field(default_factory=PollingPolicy)
    sql_polling: PollingPolicy = field(default_factory=PollingPolicy)
    sql_region_aliases: Mapping[str, str] = field(default_factory=dict)
    sql_enabled: bool = False
    thread_pool_size: int = 8

    @classmethod
    def from_raw(cls, raw: RawConfig) -> GoogleConfig:
        application = raw.get("application", {})
        compute = raw.get("compute", {})
        sql = raw.get("sql", {})
        defaults = cls()
        return cls(
            application_name=application.get("name", defaults.application_name),
            application_version=application.get("version", defaults.application_version),
            image_aliases=dict(compute.get("image_aliases", {})),
            compute_polling=_polling(compute.get("polling", {})),
            sql_polling=_polling(sql.get("polling", {})),
            sql_region_aliases=dict(sql.get("region_aliases", {})),
            sql_enabled=bool(sql.get("enabled", False)),
            thread_pool_size=int(compute.get("thread_pool_size", defaults.thread_pool_size)),
        )

    @classmethod
    def load(cls, config_dir: Path | None = None) -> GoogleConfig:
        return cls.from_raw(load_config(config_dir=config_dir))

    def with_sql_enabled(self, enabled: bool) -> GoogleConfig:
        return replace(self, sql_enabled=enabled)


def env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")
