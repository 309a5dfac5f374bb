"""Compute Engine instance handle and its display properties."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from loguru import logger

from director_google.compute import properties as props
from director_google.spi import DisplayProperty, InstanceTemplate
from director_google.urls import get_local_name

log = logger.bind(provider="gcp-compute")


@dataclass(frozen=True, slots=True)
class GoogleComputeInstance:
    """A found Compute Engine instance.

    ``details`` is the ``compute_v1.Instance`` returned by the API and
    ``boot_disk`` the ``compute_v1.Disk`` it boots from, when it could be read.
    """

    template: InstanceTemplate
    instance_id: str
    details: Any
    boot_disk: Any = None

    @property
    def private_ip_address(self) -> str | None:
        return _private_ip(self.details, self.boot_disk)

    def properties(self) -> dict[str, str | None]:
        return {
            prop.display_key: extract(self.details, self.boot_disk)
            for prop, extract in DISPLAY_EXTRACTORS
        }


def _image_id(instance: Any, boot_disk: Any) -> str | None:
    if boot_disk is None:
        return None
    return get_local_name(boot_disk.source_image)


def _launch_time(instance: Any, boot_disk: Any) -> str | None:
    timestamp = instance.creation_timestamp
    if not timestamp:
        return None
    try:
        return datetime.fromisoformat(timestamp).isoformat()
    except ValueError as e:
        log.info(
            "Problem parsing creation timestamp '{ts}' of instance '{name}': {error}",
            ts=timestamp, name=instance.name, error=e,
        )
        return None


def _private_ip(instance: Any, boot_disk: Any) -> str | None:
    if not instance.network_interfaces:
        return None
    return instance.network_interfaces[0].network_i_p or None


def _public_ip(instance: Any, boot_disk: Any) -> str | None:
    if not instance.network_interfaces:
        return None
    access_configs = instance.network_interfaces[0].access_configs
    if not access_configs:
        return None
    return access_configs[0].nat_i_p or None


DISPLAY_EXTRACTORS: tuple[tuple[DisplayProperty, Callable[[Any, Any], str | None]], ...] = (
    (props.IMAGE_ID, _image_id),
    (props.INSTANCE_ID, lambda instance, _: instance.name),
    (props.INSTANCE_TYPE, lambda instance, _: get_local_name(instance.machine_type)),
    (props.LAUNCH_TIME, _launch_time),
    (props.PRIVATE_IP_ADDRESS, _private_ip),
    (props.PUBLIC_IP_ADDRESS, _public_ip),
)
