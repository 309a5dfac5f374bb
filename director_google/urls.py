"""Helpers for Google API resource URLs."""

from __future__ import annotations

from urllib.parse import urlsplit

COMPUTE_API_DOMAIN = "https://www.googleapis.com/compute/"
COMPUTE_API_VERSION = "v1"

# https://www.googleapis.com/compute/v1/projects/<project>/global/images/<image>
_MIN_RESOURCE_URL_PARTS = 8


def get_local_name(full_resource_url: str | None) -> str | None:
    if not full_resource_url:
        return None
    return full_resource_url.split("/")[-1]


def get_project(full_resource_url: str) -> str:
    parts = urlsplit(full_resource_url).path.split("/")
    if len(parts) < _MIN_RESOURCE_URL_PARTS:
        raise ValueError(f"Malformed resource url '{full_resource_url}'.")
    return parts[-4]


def build_generic_apis_url(
    domain: str, version: str, project: str, *resource_parts: str,
) -> str:
    return "/".join([domain.rstrip("/"), version, "projects", project, *resource_parts])


def build_compute_apis_url(project: str, *resource_parts: str) -> str:
    return build_generic_apis_url(COMPUTE_API_DOMAIN, COMPUTE_API_VERSION, project, *resource_parts)


def build_zonal_url(project: str, zone: str, *resource_parts: str) -> str:
    return build_compute_apis_url(project, "zones", zone, *resource_parts)


def build_regional_url(project: str, region: str, *resource_parts: str) -> str:
    return build_compute_apis_url(project, "regions", region, *resource_parts)


def build_global_url(project: str, *resource_parts: str) -> str:
    return build_compute_apis_url(project, "global", *resource_parts)
