"""The ``google`` cloud provider: entry point to the compute and SQL resource providers."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor

from loguru import logger

from director_google.compute import provider as compute_provider
from director_google.compute.provider import GoogleComputeProvider
from director_google.compute.validator import ComputeProviderValidator
from director_google.config import GoogleConfig
from director_google.credentials import CREDENTIALS_PROPERTIES, GoogleCredentials
from director_google.operations import Sleep
from director_google.spi import (
    CloudProviderMetadata,
    Configured,
    PluginExceptionConditionAccumulator,
    ResourceProvider,
    SimpleConfiguration,
)
from director_google.sql import provider as sql_provider
from director_google.sql.provider import GoogleCloudSQLProvider
from director_google.sql.validator import SQLProviderValidator

log = logger.bind(provider="gcp")

ID = "google"
NAME = "Google Cloud Platform"
DESCRIPTION = "A provider implementation that provisions virtual resources on Google Cloud Platform."


def cloud_provider_metadata(sql_enabled: bool) -> CloudProviderMetadata:
    resource_providers = [compute_provider.METADATA]
    if sql_enabled:
        resource_providers.append(sql_provider.METADATA)
    return CloudProviderMetadata(
        provider_id=ID,
        name=NAME,
        description=DESCRIPTION,
        credentials_properties=CREDENTIALS_PROPERTIES,
        resource_providers=tuple(resource_providers),
    )


class GoogleCloudProvider:
    """Creates resource providers that share one set of credentials and one thread pool."""

    def __init__(
        self,
        credentials: GoogleCredentials,
        config: GoogleConfig,
        thread_pool: ThreadPoolExecutor | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._credentials = credentials
        self._config = config
        self._pool = thread_pool or ThreadPoolExecutor(
            max_workers=config.thread_pool_size, thread_name_prefix="gcp-io",
        )
        self._sleep = sleep
        self._metadata = cloud_provider_metadata(config.sql_enabled)

    @property
    def metadata(self) -> CloudProviderMetadata:
        return self._metadata

    @property
    def credentials(self) -> GoogleCredentials:
        return self._credentials

    def _check_provider_id(self, resource_provider_id: str) -> None:
        try:
            self._metadata.resource_provider(resource_provider_id)
        except KeyError:
            raise KeyError(f"Invalid provider id: {resource_provider_id}") from None

    def provider_configuration_validator(
        self, resource_provider_id: str,
    ) -> ComputeProviderValidator | SQLProviderValidator:
        self._check_provider_id(resource_provider_id)
        match resource_provider_id:
            case compute_provider.ID:
                return ComputeProviderValidator(self._credentials.compute)
            case _:
                return SQLProviderValidator(self._credentials.sql_admin)

    async def validate_resource_provider_configuration(
        self,
        resource_provider_id: str,
        configuration: Configured,
        accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        validator = self.provider_configuration_validator(resource_provider_id)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._pool, validator.validate, configuration, accumulator)

    async def create_resource_provider(
        self, resource_provider_id: str, configuration: SimpleConfiguration,
    ) -> ResourceProvider:
        """Create the resource provider registered under ``resource_provider_id``.

        Raises:
            KeyError: Unknown id, or ``sql`` while the SQL integration is disabled.
        """
        self._check_provider_id(resource_provider_id)
        log.info("Creating resource provider {id}", id=resource_provider_id)
        match resource_provider_id:
            case compute_provider.ID:
                return await GoogleComputeProvider.create(
                    configuration, self._credentials.compute, self._config, self._pool, self._sleep,
                )
            case _:
                return await GoogleCloudSQLProvider.create(
                    configuration,
                    self._credentials.sql_admin,
                    self._credentials.compute,
                    self._config,
                    self._pool,
                    self._sleep,
                )

    async def verify_credentials(self) -> None:
        """Probe the Compute Engine API with the configured credentials."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._pool, _list_regions, self._credentials)

    def close(self) -> None:
        self._pool.shutdown(wait=False)


def _list_regions(credentials: GoogleCredentials) -> None:
    credentials.compute.list_regions()
