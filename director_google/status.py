"""Translation of provider lifecycle strings into ``InstanceStatus``."""

from __future__ import annotations

from director_google.spi import InstanceStatus

COMPUTE_STATUS = {
    "PROVISIONING": InstanceStatus.PENDING,
    "STAGING": InstanceStatus.PENDING,
    "RUNNING": InstanceStatus.RUNNING,
    "STOPPING": InstanceStatus.STOPPING,
    "TERMINATED": InstanceStatus.STOPPED,
}

SQL_STATUS = {
    "PENDING_CREATE": InstanceStatus.PENDING,
    "RUNNABLE": InstanceStatus.RUNNING,
    "SUSPENDED": InstanceStatus.STOPPED,
    "MAINTENANCE": InstanceStatus.STOPPED,
    "FAILED": InstanceStatus.FAILED,
}


def compute_instance_status(status: str | None) -> InstanceStatus:
    return COMPUTE_STATUS.get(status or "", InstanceStatus.UNKNOWN)


def sql_instance_status(state: str | None) -> InstanceStatus:
    return SQL_STATUS.get(state or "", InstanceStatus.UNKNOWN)
