"""Google credentials and the API gateways built from them."""

from __future__ import annotations

import json
from functools import cached_property
from typing import Any

from google.api_core import gapic_v1
from loguru import logger

from director_google.compute.gateway import ComputeGateway
from director_google.config import GoogleConfig
from director_google.names import application_name_version_tag
from director_google.spi import ConfigurationProperty, Configured, Widget
from director_google.sql.gateway import SQLAdminGateway

log = logger.bind(component="credentials")

COMPUTE_SCOPE = "https://www.googleapis.com/auth/compute"
SQLADMIN_SCOPE = "https://www.googleapis.com/auth/sqlservice.admin"
SCOPES = (COMPUTE_SCOPE, SQLADMIN_SCOPE)

PROJECT_ID = ConfigurationProperty(
    config_key="projectId",
    name="Project ID",
    description="Google Cloud Project ID.",
    required=True,
)

JSON_KEY = ConfigurationProperty(
    config_key="jsonKey",
    name="Client ID JSON Key",
    description=(
        "Google Cloud service account JSON key. "
        "Leave unset to get Google credentials from the environment."
    ),
    sensitive=True,
    widget=Widget.FILE,
)

CREDENTIALS_PROPERTIES = (PROJECT_ID, JSON_KEY)


class GoogleCredentials:
    """Project id plus Google auth credentials; gateways are created lazily and shared."""

    def __init__(self, project_id: str, json_key: str | None, config: GoogleConfig) -> None:
        self.project_id = project_id
        self.json_key = json_key or None
        self._config = config

    @cached_property
    def auth(self) -> Any:
        """Scoped google-auth credentials.

        Built from the service account JSON key when one is configured,
        otherwise from application default credentials.

        Raises:
            ValueError: The JSON key is malformed.
            google.auth.exceptions.DefaultCredentialsError: No key is configured
                and the environment provides no credentials.
        """
        if self.json_key:
            from google.oauth2 import service_account

            info = json.loads(self.json_key)
            return service_account.Credentials.from_service_account_info(info, scopes=list(SCOPES))

        import google.auth

        credentials, _ = google.auth.default(scopes=list(SCOPES))
        return credentials

    @property
    def user_agent(self) -> str:
        return application_name_version_tag(
            self._config.application_name, self._config.application_version,
        )

    @cached_property
    def compute(self) -> ComputeGateway:
        client_info = gapic_v1.client_info.ClientInfo(user_agent=self.user_agent)
        return ComputeGateway.create(self.project_id, self.auth, client_info)

    @cached_property
    def sql_admin(self) -> SQLAdminGateway:
        return SQLAdminGateway.create(self.project_id, self.auth)

    def match(self, project_id: str, json_key: str | None) -> bool:
        return self.project_id == project_id and self.json_key == (json_key or None)


class GoogleCredentialsProvider:
    def __init__(self, config: GoogleConfig) -> None:
        self._config = config

    @property
    def properties(self) -> tuple[ConfigurationProperty, ...]:
        return CREDENTIALS_PROPERTIES

    def create_credentials(self, configuration: Configured) -> GoogleCredentials:
        project_id = configuration.get_configuration_value(PROJECT_ID)
        if not project_id:
            raise ValueError(f"Configuration property '{PROJECT_ID.config_key}' is required.")
        json_key = configuration.get_configuration_value(JSON_KEY)
        log.debug(
            "Creating credentials for project {project} ({source})",
            project=project_id,
            source="json key" if json_key else "environment",
        )
        return GoogleCredentials(project_id, json_key, self._config)
