"""Validation of Compute Engine provider and template configuration.

Checks are blocking: most of them issue one read-only Compute Engine call.
Problems are recorded in the accumulator under the offending configuration
key; an API failure other than "not found" aborts validation with
``TransientProviderError``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager

from loguru import logger

from director_google.compute import properties as props
from director_google.compute.gateway import ComputeGateway
from director_google.compute.request import LOCAL_SSD, resolve_image_url
from director_google.errors import ApiCallError, ResourceNotFound
from director_google.spi import (
    Configured,
    PluginExceptionConditionAccumulator,
    TransientProviderError,
)
from director_google.urls import get_local_name, get_project
from director_google.validation import COMPUTE_PREFIX_MESSAGES, check_prefix

log = logger.bind(provider="gcp-compute", component="validator")

MIN_BOOT_DISK_SIZE_GB = 10
MIN_DATA_DISK_SIZE_GB = 10
EXACT_LOCAL_SSD_DATA_DISK_SIZE_GB = 375
MIN_LOCAL_SSD_COUNT = 0
MAX_LOCAL_SSD_COUNT = 4

BOOT_DISK_TYPES = ("SSD", "Standard")
DATA_DISK_TYPES = ("LocalSSD", "SSD", "Standard")

REGION_NOT_FOUND_MSG = "Region '{}' not found for project '{}'."
ZONE_NOT_FOUND_MSG = "Zone '{}' not found for project '{}'."
ZONE_NOT_FOUND_IN_REGION_MSG = "Zone '{}' not found in region '{}' for project '{}'."
MAPPING_FOR_IMAGE_ALIAS_NOT_FOUND = "Mapping for image alias '{}' not found."
IMAGE_NOT_FOUND_MSG = "Image '{}' not found for project '{}'."
MALFORMED_IMAGE_URL_MSG = "Malformed image url '{}'."
INVALID_BOOT_DISK_TYPE_MSG = "Invalid boot disk type '{}'. Available options: {}"
INVALID_BOOT_DISK_SIZE_FORMAT_MSG = "Boot disk size must be an integer: '{}'."
INVALID_BOOT_DISK_SIZE_MSG = "Boot disk size must be at least '{}GB'. Current configuration: '{}GB'."
INVALID_DATA_DISK_COUNT_FORMAT_MSG = "Data disk count must be an integer: '{}'."
INVALID_DATA_DISK_COUNT_NEGATIVE_MSG = (
    "Data disk count must be non-negative. Current configuration: '{}'."
)
INVALID_LOCAL_SSD_DATA_DISK_COUNT_MSG = (
    "Data disk count when using local SSD drives must be between '{}' and '{}', inclusive. "
    "Current configuration: '{}'."
)
INVALID_DATA_DISK_SIZE_FORMAT_MSG = "Data disk size must be an integer: '{}'."
INVALID_DATA_DISK_SIZE_MSG = "Data disk size must be at least '{}GB'. Current configuration: '{}GB'."
INVALID_LOCAL_SSD_DATA_DISK_SIZE_MSG = (
    "Data disk size when using local SSD drives must be exactly '{}GB'. "
    "Current configuration: '{}GB'."
)
INVALID_DATA_DISK_TYPE_MSG = "Invalid data disk type '{}'. Available options: {}"
MACHINE_TYPE_NOT_FOUND_IN_ZONE_MSG = "Machine type '{}' not found in zone '{}' for project '{}'."
NETWORK_NOT_FOUND_MSG = "Network '{}' not found for project '{}'."
SUBNETWORK_NOT_FOUND_MSG = "Subnetwork '{}' not found for project '{}' in region '{}'."


@contextmanager
def _lookup(
    accumulator: PluginExceptionConditionAccumulator, key: str, not_found_message: str,
) -> Iterator[None]:
    try:
        yield
    except ResourceNotFound:
        accumulator.add_error(key, not_found_message)
    except ApiCallError as e:
        raise TransientProviderError(e.message) from e


def _parse_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


class ComputeProviderValidator:
    def __init__(self, gateway: ComputeGateway) -> None:
        self._gateway = gateway

    def validate(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        region = configuration.get_configuration_value(props.REGION)
        log.info(">> Querying region '{region}'", region=region)
        with _lookup(
            accumulator,
            props.REGION.config_key,
            REGION_NOT_FOUND_MSG.format(region, self._gateway.project),
        ):
            self._gateway.get_region(region)


class ComputeTemplateValidator:
    """Validates an instance template against the provider's region."""

    def __init__(
        self, gateway: ComputeGateway, region: str, image_aliases: Mapping[str, str],
    ) -> None:
        self._gateway = gateway
        self._region = region
        self._image_aliases = image_aliases

    def validate(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        self.check_zone(configuration, accumulator)
        self.check_image(configuration, accumulator)
        self.check_boot_disk_type(configuration, accumulator)
        self.check_boot_disk_size(configuration, accumulator)
        self.check_data_disk_count(configuration, accumulator)
        self.check_data_disk_type(configuration, accumulator)
        self.check_data_disk_size(configuration, accumulator)
        self.check_machine_type(configuration, accumulator)
        self.check_network(configuration, accumulator)
        self.check_subnetwork(configuration, accumulator)
        check_prefix(configuration, accumulator, COMPUTE_PREFIX_MESSAGES)

    def check_zone(self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator) -> None:
        zone_name = configuration.get_configuration_value(props.ZONE)
        if zone_name is None:
            return

        log.info(">> Querying zone '{zone}'", zone=zone_name)
        project = self._gateway.project
        key = props.ZONE.config_key
        with _lookup(accumulator, key, ZONE_NOT_FOUND_MSG.format(zone_name, project)):
            zone = self._gateway.get_zone(zone_name)
            if get_local_name(zone.region) != self._region:
                accumulator.add_error(
                    key, ZONE_NOT_FOUND_IN_REGION_MSG.format(zone_name, self._region, project),
                )

    def check_image(self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator) -> None:
        image = configuration.get_configuration_value(props.IMAGE)
        if image is None:
            return

        log.info(">> Querying image '{image}'", image=image)
        key = props.IMAGE.config_key
        source_image_url = resolve_image_url(image, self._image_aliases)
        if not source_image_url:
            accumulator.add_error(key, MAPPING_FOR_IMAGE_ALIAS_NOT_FOUND.format(image))
            return

        try:
            project = get_project(source_image_url)
        except ValueError:
            accumulator.add_error(key, MALFORMED_IMAGE_URL_MSG.format(image))
            return

        local_name = get_local_name(source_image_url)
        with _lookup(accumulator, key, IMAGE_NOT_FOUND_MSG.format(local_name, project)):
            self._gateway.get_image(project, local_name)

    def check_boot_disk_type(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        disk_type = configuration.get_configuration_value(props.BOOT_DISK_TYPE)
        if disk_type is not None and disk_type not in BOOT_DISK_TYPES:
            accumulator.add_error(
                props.BOOT_DISK_TYPE.config_key,
                INVALID_BOOT_DISK_TYPE_MSG.format(disk_type, ", ".join(BOOT_DISK_TYPES)),
            )

    def check_boot_disk_size(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        raw = configuration.get_configuration_value(props.BOOT_DISK_SIZE_GB)
        if raw is None:
            return

        key = props.BOOT_DISK_SIZE_GB.config_key
        size = _parse_int(raw)
        if size is None:
            accumulator.add_error(key, INVALID_BOOT_DISK_SIZE_FORMAT_MSG.format(raw))
        elif size < MIN_BOOT_DISK_SIZE_GB:
            accumulator.add_error(key, INVALID_BOOT_DISK_SIZE_MSG.format(MIN_BOOT_DISK_SIZE_GB, size))

    def check_data_disk_count(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        raw = configuration.get_configuration_value(props.DATA_DISK_COUNT)
        if raw is None:
            return

        key = props.DATA_DISK_COUNT.config_key
        count = _parse_int(raw)
        if count is None:
            accumulator.add_error(key, INVALID_DATA_DISK_COUNT_FORMAT_MSG.format(raw))
        elif configuration.get_configuration_value(props.DATA_DISK_TYPE) == LOCAL_SSD:
            if not MIN_LOCAL_SSD_COUNT <= count <= MAX_LOCAL_SSD_COUNT:
                accumulator.add_error(
                    key,
                    INVALID_LOCAL_SSD_DATA_DISK_COUNT_MSG.format(
                        MIN_LOCAL_SSD_COUNT, MAX_LOCAL_SSD_COUNT, count,
                    ),
                )
        elif count < 0:
            accumulator.add_error(key, INVALID_DATA_DISK_COUNT_NEGATIVE_MSG.format(count))

    def check_data_disk_type(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        disk_type = configuration.get_configuration_value(props.DATA_DISK_TYPE)
        if disk_type is not None and disk_type not in DATA_DISK_TYPES:
            accumulator.add_error(
                props.DATA_DISK_TYPE.config_key,
                INVALID_DATA_DISK_TYPE_MSG.format(disk_type, ", ".join(DATA_DISK_TYPES)),
            )

    def check_data_disk_size(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        raw = configuration.get_configuration_value(props.DATA_DISK_SIZE_GB)
        if raw is None:
            return

        key = props.DATA_DISK_SIZE_GB.config_key
        size = _parse_int(raw)
        if size is None:
            accumulator.add_error(key, INVALID_DATA_DISK_SIZE_FORMAT_MSG.format(raw))
        elif configuration.get_configuration_value(props.DATA_DISK_TYPE) == LOCAL_SSD:
            if size != EXACT_LOCAL_SSD_DATA_DISK_SIZE_GB:
                accumulator.add_error(
                    key,
                    INVALID_LOCAL_SSD_DATA_DISK_SIZE_MSG.format(
                        EXACT_LOCAL_SSD_DATA_DISK_SIZE_GB, size,
                    ),
                )
        elif size < MIN_DATA_DISK_SIZE_GB:
            accumulator.add_error(key, INVALID_DATA_DISK_SIZE_MSG.format(MIN_DATA_DISK_SIZE_GB, size))

    def check_machine_type(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        machine_type = configuration.get_configuration_value(props.TYPE)

        # Machine types are zonal; only worth checking once the zone is known good.
        if accumulator.conditions_by_key().get(props.ZONE.config_key):
            log.info(
                "Machine type '{type}' not being checked since zone was not found.",
                type=machine_type,
            )
            return
        if machine_type is None:
            return

        log.info(">> Querying machine type '{type}'", type=machine_type)
        zone = configuration.get_configuration_value(props.ZONE)
        with _lookup(
            accumulator,
            props.TYPE.config_key,
            MACHINE_TYPE_NOT_FOUND_IN_ZONE_MSG.format(machine_type, zone, self._gateway.project),
        ):
            self._gateway.get_machine_type(zone, machine_type)

    def check_network(self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator) -> None:
        network = configuration.get_configuration_value(props.NETWORK_NAME)
        if network is None or network == "default":
            return

        log.info(">> Querying network '{network}'", network=network)
        with _lookup(
            accumulator,
            props.NETWORK_NAME.config_key,
            NETWORK_NOT_FOUND_MSG.format(network, self._gateway.project),
        ):
            self._gateway.get_network(network)

    def check_subnetwork(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        subnetwork = configuration.get_configuration_value(props.SUBNETWORK_NAME)
        if subnetwork is None:
            return

        log.info(">> Querying subnetwork '{subnetwork}'", subnetwork=subnetwork)
        network_project = (
            configuration.get_configuration_value(props.NETWORK_PROJECT) or self._gateway.project
        )
        with _lookup(
            accumulator,
            props.SUBNETWORK_NAME.config_key,
            SUBNETWORK_NOT_FOUND_MSG.format(subnetwork, network_project, self._region),
        ):
            self._gateway.get_subnetwork(network_project, self._region, subnetwork)
