"""Google Cloud SQL resource provider.

Allocation is two-phase: database instances are created first, then a master
user is created on each instance that came up. Only instances whose user
creation also succeeded count towards ``min_count``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from director_google.batch import (
    DependentStep,
    ResourceOperations,
    allocate_resources,
    delete_resources,
    find_resources,
)
from director_google.compute.gateway import ComputeGateway
from director_google.config import GoogleConfig
from director_google.errors import AccessDenied, ApiCallError, ResourceNotFound, TransientApiError
from director_google.names import decorate_instance_name
from director_google.operations import Sleep
from director_google.spi import (
    INSTANCE_NAME_PREFIX,
    UNKNOWN_STATE,
    Configured,
    InstanceState,
    InstanceTemplate,
    InvalidCredentialsError,
    PluginExceptionConditionAccumulator,
    ResourceProviderMetadata,
    SimpleConfiguration,
    TransientProviderError,
)
from director_google.sql import properties as props
from director_google.sql.gateway import SQLAdminGateway
from director_google.sql.instance import GoogleCloudSQLInstance
from director_google.sql.validator import SQLProviderValidator, SQLTemplateValidator
from director_google.status import sql_instance_status
from director_google.validation import SQL_PREFIX_MESSAGES, is_valid_prefix

log = logger.bind(provider="gcp-sql")

ID = "sql"

METADATA = ResourceProviderMetadata(
    provider_id=ID,
    name="Google Cloud SQL",
    description="Google Cloud SQL provider",
    provider_properties=props.PROVIDER_PROPERTIES,
    template_properties=props.TEMPLATE_PROPERTIES,
    display_properties=props.DISPLAY_PROPERTIES,
)

NOT_FOUND_MESSAGES = {
    # A just-deleted instance answers 404; one that never existed answers 403.
    ResourceNotFound: "{kind} '{name}' doesn't exist anymore.",
    AccessDenied: "{kind} '{name}' not found.",
}

WORLD_ACL_ENTRY = {"value": "0.0.0.0/0", "kind": "sql#aclEntry", "name": "world"}


def build_database_instance(name: str, template: InstanceTemplate, region: str) -> dict[str, Any]:
    settings: dict[str, Any] = {
        "tier": template.get_configuration_value(props.TIER),
        "ipConfiguration": {
            "ipv4Enabled": True,
            "authorizedNetworks": [dict(WORLD_ACL_ENTRY)],
        },
    }
    preferred_location = template.get_configuration_value(props.PREFERRED_LOCATION)
    if preferred_location:
        settings["locationPreference"] = {"zone": preferred_location}
    if template.tags:
        settings["userLabels"] = dict(template.tags)

    return {"name": name, "region": region, "settings": settings}


class GoogleCloudSQLProvider:
    """Allocates, finds and deletes Cloud SQL instances."""

    def __init__(
        self,
        configuration: SimpleConfiguration,
        gateway: SQLAdminGateway,
        compute: ComputeGateway,
        config: GoogleConfig,
        thread_pool: ThreadPoolExecutor,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._configuration = configuration
        self._gateway = gateway
        self._compute = compute
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
        gateway: SQLAdminGateway,
        compute: ComputeGateway,
        config: GoogleConfig,
        thread_pool: ThreadPoolExecutor,
        sleep: Sleep = asyncio.sleep,
    ) -> GoogleCloudSQLProvider:
        provider = cls(configuration, gateway, compute, config, thread_pool, sleep)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(3),
                wait=wait_exponential(multiplier=1, max=4),
                retry=retry_if_exception_type(TransientApiError),
                sleep=sleep,
                reraise=True,
            ):
                with attempt:
                    await provider._run(gateway.list_tiers)
        except ResourceNotFound as e:
            raise InvalidCredentialsError(
                f"Unable to list tiers in project: {gateway.project}",
            ) from e
        except ApiCallError as e:
            raise TransientProviderError(e.message) from e

        return provider

    @property
    def metadata(self) -> ResourceProviderMetadata:
        return METADATA

    @property
    def region(self) -> str:
        return self._configuration.get_configuration_value(props.REGION_SQL)

    def create_resource_template(
        self, name: str, configuration: SimpleConfiguration, tags: Mapping[str, str],
    ) -> InstanceTemplate:
        return InstanceTemplate(name, configuration, dict(tags))

    async def validate_provider(self, accumulator: PluginExceptionConditionAccumulator) -> None:
        validator = SQLProviderValidator(self._gateway)
        await self._run(validator.validate, self._configuration, accumulator)

    async def validate_template(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        validator = SQLTemplateValidator(
            self._gateway, self._compute, self.region, self._config.sql_region_aliases,
        )
        await self._run(validator.validate, configuration, accumulator)

    # -- batch operations ---------------------------------------------------

    async def _fetch(self, pending):
        return await self._run(self._gateway.get_operation, pending)

    def _operations(self, template: InstanceTemplate) -> ResourceOperations:
        region = self.region

        async def create(name: str):
            body = build_database_instance(name, template, region)
            return await self._run(self._gateway.insert_instance, body)

        async def delete(name: str):
            return await self._run(self._gateway.delete_instance, name)

        return ResourceOperations(
            kind="database instance",
            create=create,
            delete=delete,
            fetch=self._fetch,
            policy=self._config.sql_polling,
            sleep=self._sleep,
        )

    def _master_user_step(self, template: InstanceTemplate) -> DependentStep:
        username = template.get_configuration_value(props.MASTER_USERNAME)
        password = template.get_configuration_value(props.MASTER_USER_PASSWORD)

        async def submit(instance_name: str):
            return await self._run(self._gateway.insert_user, instance_name, username, password)

        return DependentStep(description="create master user", submit=submit, fetch=self._fetch)

    def _names(self, template: InstanceTemplate, instance_ids: Sequence[str]) -> dict[str, str]:
        """Map decorated resource names to host ids. Repeated ids collapse to one resource."""
        prefix = template.get_configuration_value(INSTANCE_NAME_PREFIX)
        return {decorate_instance_name(prefix, instance_id): instance_id for instance_id in instance_ids}

    async def allocate(
        self, template: InstanceTemplate, instance_ids: Sequence[str], min_count: int,
    ) -> list[str]:
        names = list(self._names(template, instance_ids))
        log.info("Allocating {count} database instances: {names}", count=len(names), names=names)
        return await allocate_resources(
            self._operations(template),
            names,
            min_count,
            dependent=self._master_user_step(template),
        )

    async def find(
        self, template: InstanceTemplate, instance_ids: Sequence[str],
    ) -> list[GoogleCloudSQLInstance]:
        if not is_valid_prefix(template, SQL_PREFIX_MESSAGES):
            return []

        names = self._names(template, instance_ids)
        found = await self._lookup(list(names))
        return [
            GoogleCloudSQLInstance(template, names[name], details)
            for name, details in found.items()
        ]

    async def get_instance_state(
        self, template: InstanceTemplate, instance_ids: Sequence[str],
    ) -> dict[str, InstanceState]:
        if not is_valid_prefix(template, SQL_PREFIX_MESSAGES):
            return {instance_id: UNKNOWN_STATE for instance_id in instance_ids}

        names = self._names(template, instance_ids)
        found = await self._lookup(list(names))
        return {
            instance_id: (
                InstanceState(sql_instance_status(found[name].get("state")))
                if name in found
                else UNKNOWN_STATE
            )
            for name, instance_id in names.items()
        }

    async def delete(self, template: InstanceTemplate, instance_ids: Sequence[str]) -> None:
        if not is_valid_prefix(template, SQL_PREFIX_MESSAGES):
            return

        names = list(self._names(template, instance_ids))
        log.info("Deleting {count} database instances: {names}", count=len(names), names=names)
        await delete_resources(self._operations(template), names)

    async def _lookup(self, names: list[str]) -> dict[str, dict[str, Any]]:
        async def get(name: str):
            return await self._run(self._gateway.get_instance, name)

        return await find_resources(names, get, "Database instance", NOT_FOUND_MESSAGES)
