from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from director_google.cloud_provider import GoogleCloudProvider, cloud_provider_metadata
from director_google.compute.gateway import ComputeGateway
from director_google.compute.provider import GoogleComputeProvider
from director_google.compute.validator import ComputeProviderValidator
from director_google.config import GoogleConfig
from director_google.credentials import GoogleCredentials
from director_google.errors import ResourceNotFound
from director_google.spi import (
    PluginExceptionConditionAccumulator,
    ResourceProvider,
    SimpleConfiguration,
)
from director_google.sql.gateway import SQLAdminGateway
from director_google.sql.provider import GoogleCloudSQLProvider
from director_google.sql.validator import SQLProviderValidator

pytestmark = [pytest.mark.xdist_group("unit")]


@pytest.fixture
def credentials() -> MagicMock:
    credentials = MagicMock(spec=GoogleCredentials)
    credentials.project_id = "my-project"
    credentials.compute = MagicMock(spec=ComputeGateway)
    credentials.compute.project = "my-project"
    credentials.sql_admin = MagicMock(spec=SQLAdminGateway)
    credentials.sql_admin.project = "my-project"
    credentials.sql_admin.list_tiers.return_value = []
    return credentials


def _cloud(credentials, thread_pool, sleep, *, sql_enabled: bool = False) -> GoogleCloudProvider:
    return GoogleCloudProvider(credentials, GoogleConfig(sql_enabled=sql_enabled), thread_pool, sleep)


class TestMetadata:
    def test_identity(self):
        metadata = cloud_provider_metadata(sql_enabled=False)
        assert metadata.provider_id == "google"
        assert metadata.name == "Google Cloud Platform"
        assert [p.config_key for p in metadata.credentials_properties] == ["projectId", "jsonKey"]

    def test_sql_is_hidden_unless_enabled(self):
        assert [p.provider_id for p in cloud_provider_metadata(False).resource_providers] == ["compute"]
        assert [p.provider_id for p in cloud_provider_metadata(True).resource_providers] == [
            "compute",
            "sql",
        ]

    def test_json_key_is_sensitive(self):
        [_, json_key] = cloud_provider_metadata(False).credentials_properties
        assert json_key.sensitive


class TestProviderConfigurationValidator:
    def test_compute(self, credentials, thread_pool, sleep):
        cloud = _cloud(credentials, thread_pool, sleep)
        assert isinstance(cloud.provider_configuration_validator("compute"), ComputeProviderValidator)

    def test_sql_when_enabled(self, credentials, thread_pool, sleep):
        cloud = _cloud(credentials, thread_pool, sleep, sql_enabled=True)
        assert isinstance(cloud.provider_configuration_validator("sql"), SQLProviderValidator)

    def test_sql_when_disabled(self, credentials, thread_pool, sleep):
        cloud = _cloud(credentials, thread_pool, sleep)
        with pytest.raises(KeyError, match="Invalid provider id: sql"):
            cloud.provider_configuration_validator("sql")

    def test_unknown_id(self, credentials, thread_pool, sleep):
        cloud = _cloud(credentials, thread_pool, sleep, sql_enabled=True)
        with pytest.raises(KeyError, match="Invalid provider id: storage"):
            cloud.provider_configuration_validator("storage")

    @pytest.mark.asyncio
    async def test_validate_configuration(self, credentials, thread_pool, sleep):
        credentials.compute.get_region.side_effect = ResourceNotFound("not found", 404)
        cloud = _cloud(credentials, thread_pool, sleep)
        acc = PluginExceptionConditionAccumulator()

        await cloud.validate_resource_provider_configuration(
            "compute", SimpleConfiguration({"region": "mars1"}), acc,
        )

        assert acc.errors("region") == ["Region 'mars1' not found for project 'my-project'."]


class TestCreateResourceProvider:
    @pytest.mark.asyncio
    async def test_compute(self, credentials, thread_pool, sleep):
        cloud = _cloud(credentials, thread_pool, sleep)

        provider = await cloud.create_resource_provider("compute", SimpleConfiguration())

        assert isinstance(provider, GoogleComputeProvider)
        assert isinstance(provider, ResourceProvider)
        assert provider.metadata.provider_id == "compute"

    @pytest.mark.asyncio
    async def test_sql(self, credentials, thread_pool, sleep):
        cloud = _cloud(credentials, thread_pool, sleep, sql_enabled=True)

        provider = await cloud.create_resource_provider("sql", SimpleConfiguration())

        assert isinstance(provider, GoogleCloudSQLProvider)
        assert isinstance(provider, ResourceProvider)
        credentials.sql_admin.list_tiers.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_unknown_id(self, credentials, thread_pool, sleep):
        cloud = _cloud(credentials, thread_pool, sleep)

        with pytest.raises(KeyError, match="Invalid provider id: sql"):
            await cloud.create_resource_provider("sql", SimpleConfiguration())


class TestVerifyCredentials:
    @pytest.mark.asyncio
    async def test_lists_regions(self, credentials, thread_pool, sleep):
        await _cloud(credentials, thread_pool, sleep).verify_credentials()

        credentials.compute.list_regions.assert_called_once_with()
