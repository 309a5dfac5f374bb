from __future__ import annotations

from collections.abc import Mapping


def decorate_instance_name(prefix: str, instance_id: str) -> str:
    """Provider-side resource name for a host instance id."""
    return f"{prefix}-{instance_id}"


def application_name_version_tag(name: str, version: str) -> str:
    return f"{name}/{version}"


def sql_region_to_compute_region(sql_region: str, aliases: Mapping[str, str]) -> str:
    """Cloud SQL and Compute Engine name some regions differently (us-central vs us-central1)."""
    return aliases.get(sql_region, sql_region)
