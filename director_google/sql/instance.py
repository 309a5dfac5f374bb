from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from ipaddress import ip_address
from typing import Any

from director_google.spi import DisplayProperty, InstanceTemplate
from director_google.sql import properties as props


@dataclass(frozen=True, slots=True)
class GoogleCloudSQLInstance:
    """A found Cloud SQL instance; ``details`` is the ``DatabaseInstance`` resource dict."""

    template: InstanceTemplate
    instance_id: str
    details: dict[str, Any]

    @property
    def private_ip_address(self) -> str:
        """First assigned address.

        Raises:
            ValueError: The instance has no address yet, or it is not a valid IP.
        """
        mappings = self.details.get("ipAddresses") or []
        if not mappings:
            raise ValueError(
                f"No network interfaces found for database instance '{self.details.get('name')}'."
            )
        address = mappings[0].get("ipAddress", "")
        try:
            return str(ip_address(address))
        except ValueError as e:
            raise ValueError(f"Invalid IPv4 address '{address}'") from e

    def properties(self) -> dict[str, str | None]:
        return {prop.display_key: extract(self.details) for prop, extract in DISPLAY_EXTRACTORS}


DISPLAY_EXTRACTORS: tuple[tuple[DisplayProperty, Callable[[dict[str, Any]], str | None]], ...] = (
    (props.DATABASE_INSTANCE_ID, lambda d: d.get("name")),
    (props.REGION, lambda d: d.get("region")),
    (props.INSTANCE_TIER, lambda d: (d.get("settings") or {}).get("tier")),
)
