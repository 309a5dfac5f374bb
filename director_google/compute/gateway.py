"""Thin synchronous wrapper over the google-cloud-compute clients.

Every call translates library errors into ``director_google.errors`` so the
provider and batch logic never see ``google.api_core`` exceptions. Calls are
blocking; the provider dispatches them to its thread pool.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from google.api_core import exceptions as core_exceptions
from google.auth import exceptions as auth_exceptions

from director_google.errors import TransientApiError, from_status
from director_google.operations import OperationSnapshot, PendingOperation


@contextmanager
def api_errors() -> Iterator[None]:
    try:
        yield
    except core_exceptions.GoogleAPICallError as e:
        raise from_status(e.code, e.message or str(e)) from e
    except (core_exceptions.GoogleAPIError, auth_exceptions.TransportError, OSError) as e:
        raise TransientApiError(str(e)) from e


def _status_name(status: Any) -> str:
    return getattr(status, "name", None) or str(status)


class ComputeGateway:
    """Project-scoped Compute Engine calls used by the plugin."""

    def __init__(
        self,
        project: str,
        instances_client: Any,
        zone_operations_client: Any,
        zones_client: Any,
        regions_client: Any,
        images_client: Any,
        machine_types_client: Any,
        networks_client: Any,
        subnetworks_client: Any,
        disks_client: Any,
    ) -> None:
        self.project = project
        self._instances = instances_client
        self._zone_operations = zone_operations_client
        self._zones = zones_client
        self._regions = regions_client
        self._images = images_client
        self._machine_types = machine_types_client
        self._networks = networks_client
        self._subnetworks = subnetworks_client
        self._disks = disks_client

    @classmethod
    def create(cls, project: str, credentials: Any, client_info: Any = None) -> ComputeGateway:
        from google.cloud import compute_v1  # type: ignore[reportMissingImports]

        kwargs = {"credentials": credentials, "client_info": client_info}
        return cls(
            project=project,
            instances_client=compute_v1.InstancesClient(**kwargs),
            zone_operations_client=compute_v1.ZoneOperationsClient(**kwargs),
            zones_client=compute_v1.ZonesClient(**kwargs),
            regions_client=compute_v1.RegionsClient(**kwargs),
            images_client=compute_v1.ImagesClient(**kwargs),
            machine_types_client=compute_v1.MachineTypesClient(**kwargs),
            networks_client=compute_v1.NetworksClient(**kwargs),
            subnetworks_client=compute_v1.SubnetworksClient(**kwargs),
            disks_client=compute_v1.DisksClient(**kwargs),
        )

    # -- instances --------------------------------------------------------

    def insert_instance(self, zone: str, instance: Any) -> PendingOperation:
        with api_errors():
            operation = self._instances.insert(
                project=self.project, zone=zone, instance_resource=instance,
            )
        return PendingOperation(name=operation.name, target_id=instance.name, location=zone)

    def delete_instance(self, zone: str, name: str) -> PendingOperation:
        with api_errors():
            operation = self._instances.delete(project=self.project, zone=zone, instance=name)
        return PendingOperation(name=operation.name, target_id=name, location=zone)

    def get_instance(self, zone: str, name: str) -> Any:
        with api_errors():
            return self._instances.get(project=self.project, zone=zone, instance=name)

    def get_disk(self, zone: str, name: str) -> Any:
        with api_errors():
            return self._disks.get(project=self.project, zone=zone, disk=name)

    def get_zone_operation(self, pending: PendingOperation) -> OperationSnapshot:
        with api_errors():
            operation = self._zone_operations.get(
                project=self.project, zone=pending.location, operation=pending.name,
            )
        errors: tuple[str, ...] = ()
        if operation.error and operation.error.errors:
            errors = tuple(e.message for e in operation.error.errors)
        return OperationSnapshot(
            name=operation.name, status=_status_name(operation.status), errors=errors,
        )

    # -- lookups ----------------------------------------------------------

    def get_zone(self, zone: str, project: str | None = None) -> Any:
        with api_errors():
            return self._zones.get(project=project or self.project, zone=zone)

    def list_regions(self) -> list[Any]:
        with api_errors():
            return list(self._regions.list(project=self.project))

    def get_region(self, region: str) -> Any:
        with api_errors():
            return self._regions.get(project=self.project, region=region)

    def get_image(self, project: str, image: str) -> Any:
        with api_errors():
            return self._images.get(project=project, image=image)

    def get_machine_type(self, zone: str, machine_type: str) -> Any:
        with api_errors():
            return self._machine_types.get(
                project=self.project, zone=zone, machine_type=machine_type,
            )

    def get_network(self, network: str) -> Any:
        with api_errors():
            return self._networks.get(project=self.project, network=network)

    def get_subnetwork(self, project: str, region: str, subnetwork: str) -> Any:
        with api_errors():
            return self._subnetworks.get(project=project, region=region, subnetwork=subnetwork)
