"""Plugin entry point.

``GoogleLauncher.initialize`` reads configuration once; afterwards
``create_cloud_provider`` builds credentials from the host configuration,
checks them against the Compute Engine API and returns a ready
``GoogleCloudProvider``.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping
from pathlib import Path

from google.auth.exceptions import GoogleAuthError
from loguru import logger

from director_google import cloud_provider
from director_google.cloud_provider import GoogleCloudProvider, cloud_provider_metadata
from director_google.config import SQL_INTEGRATION_ENV, GoogleConfig, env_flag
from director_google.credentials import GoogleCredentialsProvider
from director_google.errors import ApiCallError
from director_google.observability import LogConfig, setup_logging, teardown_logging
from director_google.operations import Sleep
from director_google.spi import (
    CloudProviderMetadata,
    InvalidCredentialsError,
    SimpleConfiguration,
)

log = logger.bind(component="launcher")

INVALID_CREDENTIALS_MSG = "Invalid cloud provider credentials for project '{}'."


class GoogleLauncher:
    def __init__(self) -> None:
        self._config: GoogleConfig | None = None
        self._log_handlers: list[int] = []

    @property
    def config(self) -> GoogleConfig:
        if self._config is None:
            raise RuntimeError("Launcher is not initialized")
        return self._config

    def initialize(
        self,
        config_dir: Path | None = None,
        *,
        environ: Mapping[str, str] = os.environ,
        log_config: LogConfig | None = None,
    ) -> None:
        """Load the bundled configuration, overlaid by ``config_dir/google.toml``.

        The Cloud SQL integration is enabled by either ``sql.enabled`` in the
        configuration or the ``DIRECTOR_ENABLE_GOOGLE_CLOUD_SQL_INTEGRATION``
        environment variable. The environment is read here and nowhere else.
        """
        if log_config is not None:
            self._log_handlers = setup_logging(log_config)

        config = GoogleConfig.load(config_dir)
        if env_flag(environ.get(SQL_INTEGRATION_ENV)):
            config = config.with_sql_enabled(True)
        self._config = config
        log.info(
            "Initialized {name}/{version} (sql_enabled={sql})",
            name=config.application_name,
            version=config.application_version,
            sql=config.sql_enabled,
        )

    def shutdown(self) -> None:
        teardown_logging(self._log_handlers)
        self._log_handlers = []

    @property
    def cloud_provider_metadata(self) -> list[CloudProviderMetadata]:
        return [cloud_provider_metadata(self.config.sql_enabled)]

    async def create_cloud_provider(
        self,
        cloud_provider_id: str,
        configuration: SimpleConfiguration,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> GoogleCloudProvider:
        """Build a cloud provider for ``configuration``.

        Raises:
            KeyError: ``cloud_provider_id`` is not ``google``.
            InvalidCredentialsError: The credentials cannot be built, or the
                Compute Engine API rejects them.
        """
        if cloud_provider_id != cloud_provider.ID:
            raise KeyError(f"Cloud provider not found: {cloud_provider_id}")

        config = self.config
        credentials = GoogleCredentialsProvider(config).create_credentials(configuration)
        message = INVALID_CREDENTIALS_MSG.format(credentials.project_id)

        provider = GoogleCloudProvider(credentials, config, sleep=sleep)
        try:
            await provider.verify_credentials()
        except ApiCallError as e:
            provider.close()
            log.error("{message} {error}", message=message, error=e.message)
            raise InvalidCredentialsError(message) from e
        except (ValueError, GoogleAuthError) as e:
            provider.close()
            log.error("{message} {error}", message=message, error=str(e))
            raise InvalidCredentialsError(message) from e

        return provider
