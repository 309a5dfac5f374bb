"""Builds ``compute_v1.Instance`` insert requests from a template."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from director_google.compute import properties as props
from director_google.spi import InstanceTemplate
from director_google.urls import build_global_url, build_regional_url, build_zonal_url

EXTERNAL_NAT = "External NAT"
ONE_TO_ONE_NAT = "ONE_TO_ONE_NAT"
LOCAL_SSD = "LocalSSD"

_DISK_TYPES = {
    "LocalSSD": "local-ssd",
    "SSD": "pd-ssd",
    "Standard": "pd-standard",
}


def resolve_image_url(image: str | None, aliases: Mapping[str, str]) -> str | None:
    """Full image URL for an alias or URL, or ``None`` when the alias is unknown."""
    if image is None:
        return None
    if image.startswith("https://"):
        return image
    return aliases.get(image)


def disk_type_url(project: str, zone: str, disk_type: str) -> str:
    # Validated upstream; anything unrecognised is treated as Standard.
    return build_zonal_url(project, zone, "diskTypes", _DISK_TYPES.get(disk_type, "pd-standard"))


def instance_tags(template: InstanceTemplate) -> list[str]:
    raw = template.get_configuration_value(props.INSTANCE_TAGS) or ""
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _flag(template: InstanceTemplate, prop: Any) -> bool:
    return (template.get_configuration_value(prop) or "").strip().lower() == "true"


def build_instance(
    name: str,
    template: InstanceTemplate,
    project: str,
    source_image_url: str,
    region: str,
) -> Any:
    from google.cloud import compute_v1  # type: ignore[reportMissingImports]

    zone = template.get_configuration_value(props.ZONE)
    value = template.get_configuration_value

    boot_disk = compute_v1.AttachedDisk(
        boot=True,
        auto_delete=True,
        initialize_params=compute_v1.AttachedDiskInitializeParams(
            source_image=source_image_url,
            disk_size_gb=int(value(props.BOOT_DISK_SIZE_GB)),
            disk_type=disk_type_url(project, zone, value(props.BOOT_DISK_TYPE)),
        ),
    )
    disks = [boot_disk]

    data_disk_type = value(props.DATA_DISK_TYPE)
    data_disk_type_url = disk_type_url(project, zone, data_disk_type)
    for _ in range(int(value(props.DATA_DISK_COUNT))):
        if data_disk_type == LOCAL_SSD:
            disks.append(compute_v1.AttachedDisk(
                type_="SCRATCH",
                interface=value(props.LOCAL_SSD_INTERFACE_TYPE),
                auto_delete=True,
                initialize_params=compute_v1.AttachedDiskInitializeParams(
                    disk_type=data_disk_type_url,
                ),
            ))
        else:
            disks.append(compute_v1.AttachedDisk(
                type_="PERSISTENT",
                auto_delete=True,
                initialize_params=compute_v1.AttachedDiskInitializeParams(
                    disk_type=data_disk_type_url,
                    disk_size_gb=int(value(props.DATA_DISK_SIZE_GB)),
                ),
            ))

    network_project = value(props.NETWORK_PROJECT) or project
    network_interface = compute_v1.NetworkInterface(
        network=build_global_url(network_project, "networks", value(props.NETWORK_NAME)),
    )
    subnetwork = value(props.SUBNETWORK_NAME)
    if subnetwork:
        network_interface.subnetwork = build_regional_url(
            network_project, region, "subnetworks", subnetwork,
        )
    if _flag(template, props.ASSIGN_EXTERNAL_IPS):
        network_interface.access_configs = [
            compute_v1.AccessConfig(name=EXTERNAL_NAT, type_=ONE_TO_ONE_NAT),
        ]

    instance = compute_v1.Instance(
        name=name,
        machine_type=build_zonal_url(project, zone, "machineTypes", value(props.TYPE)),
        disks=disks,
        network_interfaces=[network_interface],
        labels=_labels(template),
    )

    tags = instance_tags(template)
    if tags:
        instance.tags = compute_v1.Tags(items=tags)

    if _flag(template, props.USE_PREEMPTIBLE_INSTANCES):
        instance.scheduling = compute_v1.Scheduling(
            preemptible=True, automatic_restart=False, on_host_maintenance="TERMINATE",
        )

    return instance


def _labels(template: InstanceTemplate) -> dict[str, str]:
    # Label keys and values: lowercase letters, digits, dashes and underscores.
    return {
        _label_safe(k): _label_safe(v)
        for k, v in template.tags.items()
        if _label_safe(k)[:1].isalpha()
    }


def _label_safe(text: str) -> str:
    return "".join(c if (c.isascii() and c.isalnum()) or c in "-_" else "_" for c in text.lower())[:63]
