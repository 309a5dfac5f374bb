"""Google Compute Engine resource provider.

Stateless apart from immutable configuration, the shared ``ComputeGateway``
and the thread pool its blocking calls are dispatched to. Any number of
allocate/find/delete calls may run concurrently on one instance.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor

from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from director_google.batch import (
    ResourceOperations,
    allocate_resources,
    delete_resources,
    find_resources,
)
from director_google.compute import properties as props
from director_google.compute.gateway import ComputeGateway
from director_google.compute.instance import GoogleComputeInstance
from director_google.compute.request import build_instance, resolve_image_url
from director_google.compute.validator import (
    REGION_NOT_FOUND_MSG,
    ComputeProviderValidator,
    ComputeTemplateValidator,
)
from director_google.config import GoogleConfig
from director_google.errors import ApiCallError, ResourceNotFound, TransientApiError
from director_google.names import decorate_instance_name
from director_google.operations import Sleep
from director_google.spi import (
    INSTANCE_NAME_PREFIX,
    UNKNOWN_STATE,
    Configured,
    InstanceState,
    InstanceTemplate,
    PluginExceptionConditionAccumulator,
    ResourceProviderMetadata,
    SimpleConfiguration,
    TransientProviderError,
)
from director_google.status import compute_instance_status
from director_google.urls import get_local_name
from director_google.validation import COMPUTE_PREFIX_MESSAGES, is_valid_prefix

log = logger.bind(provider="gcp-compute")

ID = "compute"

METADATA = ResourceProviderMetadata(
    provider_id=ID,
    name="Google Compute Provider",
    description="Provisions VMs on Google Compute Engine",
    provider_properties=props.PROVIDER_PROPERTIES,
    template_properties=props.TEMPLATE_PROPERTIES,
    display_properties=props.DISPLAY_PROPERTIES,
)


class GoogleComputeProvider:
    """Allocates, finds and deletes Compute Engine instances."""

    def __init__(
        self,
        configuration: SimpleConfiguration,
        gateway: ComputeGateway,
        config: GoogleConfig,
        thread_pool: ThreadPoolExecutor,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._configuration = configuration
        self._gateway = gateway
        self._config = config
        self._pool = thread_pool
        self._sleep = sleep

    async def _run[T](self, fn: Callable[..., T], *args: object) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._pool, fn, *args)

    @classmethod
    async def create(
        cls,
        configuration: SimpleConfiguration,
        gateway: ComputeGateway,
        config: GoogleConfig,
        thread_pool: ThreadPoolExecutor,
        sleep: Sleep = asyncio.sleep,
    ) -> GoogleComputeProvider:
        provider = cls(configuration, gateway, config, thread_pool, sleep)
        region = provider.region

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(3),
                wait=wait_exponential(multiplier=1, max=4),
                retry=retry_if_exception_type(TransientApiError),
                sleep=sleep,
                reraise=True,
            ):
                with attempt:
                    await provider._run(gateway.get_region, region)
        except ResourceNotFound as e:
            raise ValueError(REGION_NOT_FOUND_MSG.format(region, gateway.project)) from e
        except ApiCallError as e:
            raise TransientProviderError(e.message) from e

        log.info("Using region {region} in project {project}", region=region, project=gateway.project)
        return provider

    @property
    def metadata(self) -> ResourceProviderMetadata:
        return METADATA

    @property
    def region(self) -> str:
        return self._configuration.get_configuration_value(props.REGION)

    def create_resource_template(
        self, name: str, configuration: SimpleConfiguration, tags: Mapping[str, str],
    ) -> InstanceTemplate:
        return InstanceTemplate(name, configuration, dict(tags))

    async def validate_provider(self, accumulator: PluginExceptionConditionAccumulator) -> None:
        validator = ComputeProviderValidator(self._gateway)
        await self._run(validator.validate, self._configuration, accumulator)

    async def validate_template(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        validator = ComputeTemplateValidator(self._gateway, self.region, self._config.image_aliases)
        await self._run(validator.validate, configuration, accumulator)

    # -- batch operations ---------------------------------------------------

    def _operations(self, template: InstanceTemplate, source_image_url: str | None = None) -> ResourceOperations:
        zone = template.get_configuration_value(props.ZONE)
        project = self._gateway.project

        async def create(name: str):
            instance = build_instance(name, template, project, source_image_url, self.region)
            return await self._run(self._gateway.insert_instance, zone, instance)

        async def delete(name: str):
            return await self._run(self._gateway.delete_instance, zone, name)

        async def fetch(pending):
            return await self._run(self._gateway.get_zone_operation, pending)

        return ResourceOperations(
            kind="instance",
            create=create,
            delete=delete,
            fetch=fetch,
            policy=self._config.compute_polling,
            sleep=self._sleep,
        )

    def _names(self, template: InstanceTemplate, instance_ids: Sequence[str]) -> dict[str, str]:
        """Map decorated resource names to host ids. Repeated ids collapse to one resource."""
        prefix = template.get_configuration_value(INSTANCE_NAME_PREFIX)
        return {decorate_instance_name(prefix, instance_id): instance_id for instance_id in instance_ids}

    async def allocate(
        self, template: InstanceTemplate, instance_ids: Sequence[str], min_count: int,
    ) -> list[str]:
        image = template.get_configuration_value(props.IMAGE)
        source_image_url = resolve_image_url(image, self._config.image_aliases)
        if source_image_url is None:
            raise ValueError(f"Image for alias '{image}' not found.")

        names = list(self._names(template, instance_ids))
        log.info("Allocating {count} instances: {names}", count=len(names), names=names)
        return await allocate_resources(self._operations(template, source_image_url), names, min_count)

    async def find(
        self, template: InstanceTemplate, instance_ids: Sequence[str],
    ) -> list[GoogleComputeInstance]:
        if not is_valid_prefix(template, COMPUTE_PREFIX_MESSAGES):
            return []

        zone = template.get_configuration_value(props.ZONE)
        names = self._names(template, instance_ids)

        async def get(name: str):
            return await self._run(self._get_instance_with_boot_disk, zone, name)

        found = await find_resources(list(names), get, "Instance")
        return [
            GoogleComputeInstance(template, names[name], instance, boot_disk)
            for name, (instance, boot_disk) in found.items()
        ]

    async def get_instance_state(
        self, template: InstanceTemplate, instance_ids: Sequence[str],
    ) -> dict[str, InstanceState]:
        if not is_valid_prefix(template, COMPUTE_PREFIX_MESSAGES):
            return {instance_id: UNKNOWN_STATE for instance_id in instance_ids}

        zone = template.get_configuration_value(props.ZONE)
        names = self._names(template, instance_ids)

        async def get(name: str):
            return await self._run(self._gateway.get_instance, zone, name)

        found = await find_resources(list(names), get, "Instance")
        return {
            instance_id: (
                InstanceState(compute_instance_status(found[name].status))
                if name in found
                else UNKNOWN_STATE
            )
            for name, instance_id in names.items()
        }

    async def delete(self, template: InstanceTemplate, instance_ids: Sequence[str]) -> None:
        if not is_valid_prefix(template, COMPUTE_PREFIX_MESSAGES):
            return

        names = list(self._names(template, instance_ids))
        log.info("Deleting {count} instances: {names}", count=len(names), names=names)
        await delete_resources(self._operations(template), names)

    def _get_instance_with_boot_disk(self, zone: str, name: str):
        instance = self._gateway.get_instance(zone, name)
        boot_disk = None
        for disk in instance.disks:
            if disk.boot:
                try:
                    boot_disk = self._gateway.get_disk(zone, get_local_name(disk.source))
                except ResourceNotFound:
                    log.info("Boot disk of instance '{name}' not found.", name=name)
                break
        return instance, boot_disk

