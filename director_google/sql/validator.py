"""Validation of Cloud SQL provider and template configuration."""

from __future__ import annotations

from collections.abc import Mapping

from loguru import logger

from director_google.compute.gateway import ComputeGateway
from director_google.errors import ApiCallError, ResourceNotFound
from director_google.names import sql_region_to_compute_region
from director_google.spi import (
    Configured,
    PluginExceptionConditionAccumulator,
    TransientProviderError,
)
from director_google.sql import properties as props
from director_google.sql.gateway import SQLAdminGateway
from director_google.urls import get_local_name
from director_google.validation import SQL_PREFIX_MESSAGES, check_prefix

log = logger.bind(provider="gcp-sql", component="validator")

MIN_USERNAME_LENGTH = 1
MAX_USERNAME_LENGTH = 16
MIN_PASSWORD_LENGTH = 1
MAX_PASSWORD_LENGTH = 16

REGION_NOT_FOUND_MSG = "Region '{}' not found for project '{}'."
INVALID_TIER_MSG = "Database instance tier '{}' not found."
PREFERRED_LOCATION_NOT_FOUND_MSG = "Preferred location '{}' not found for project '{}'."
PREFERRED_LOCATION_NOT_FOUND_IN_REGION_MSG = (
    "Preferred location '{}' not found in region '{}' for project '{}'."
)
USERNAME_MISSING_MSG = "Database instance username must be provided."
INVALID_USERNAME_LENGTH_MSG = (
    f"Database instance username must be between {MIN_USERNAME_LENGTH} "
    f"and {MAX_USERNAME_LENGTH} characters."
)
PASSWORD_MISSING_MSG = "Database instance user password must be provided."
INVALID_PASSWORD_LENGTH_MSG = (
    f"Database instance user password must be between {MIN_PASSWORD_LENGTH} "
    f"and {MAX_PASSWORD_LENGTH} characters."
)


def _list_tiers(gateway: SQLAdminGateway) -> list[dict]:
    try:
        return gateway.list_tiers()
    except ApiCallError as e:
        raise TransientProviderError(e.message) from e


class SQLProviderValidator:
    def __init__(self, gateway: SQLAdminGateway) -> None:
        self._gateway = gateway

    def validate(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        region = configuration.get_configuration_value(props.REGION_SQL)
        log.info(">> Querying region '{region}'", region=region)

        for tier in _list_tiers(self._gateway):
            if region in tier.get("region", []):
                return
        accumulator.add_error(
            props.REGION_SQL.config_key,
            REGION_NOT_FOUND_MSG.format(region, self._gateway.project),
        )


class SQLTemplateValidator:
    def __init__(
        self,
        gateway: SQLAdminGateway,
        compute: ComputeGateway,
        region: str,
        region_aliases: Mapping[str, str],
    ) -> None:
        self._gateway = gateway
        self._compute = compute
        self._region = region
        self._region_aliases = region_aliases

    def validate(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        self.check_tier(configuration, accumulator)
        self.check_preferred_location(configuration, accumulator)
        check_prefix(configuration, accumulator, SQL_PREFIX_MESSAGES)
        self.check_username(configuration, accumulator)
        self.check_password(configuration, accumulator)

    def check_tier(self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator) -> None:
        tier_name = configuration.get_configuration_value(props.TIER)
        log.info(">> Querying tier '{tier}'", tier=tier_name)
        if any(tier.get("tier") == tier_name for tier in _list_tiers(self._gateway)):
            return
        accumulator.add_error(props.TIER.config_key, INVALID_TIER_MSG.format(tier_name))

    def check_preferred_location(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        location = configuration.get_configuration_value(props.PREFERRED_LOCATION)
        if not location:
            return

        log.info(">> Querying zone '{zone}'", zone=location)
        key = props.PREFERRED_LOCATION.config_key
        project = self._compute.project
        compute_region = sql_region_to_compute_region(self._region, self._region_aliases)
        try:
            zone = self._compute.get_zone(location)
        except ResourceNotFound:
            accumulator.add_error(key, PREFERRED_LOCATION_NOT_FOUND_MSG.format(location, project))
            return
        except ApiCallError as e:
            raise TransientProviderError(e.message) from e

        if get_local_name(zone.region) != compute_region:
            accumulator.add_error(
                key, PREFERRED_LOCATION_NOT_FOUND_IN_REGION_MSG.format(location, self._region, project),
            )

    def check_username(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        username = configuration.get_configuration_value(props.MASTER_USERNAME)
        key = props.MASTER_USERNAME.config_key
        if username is None:
            accumulator.add_error(key, USERNAME_MISSING_MSG)
        elif not MIN_USERNAME_LENGTH <= len(username) <= MAX_USERNAME_LENGTH:
            accumulator.add_error(key, INVALID_USERNAME_LENGTH_MSG)

    def check_password(
        self, configuration: Configured, accumulator: PluginExceptionConditionAccumulator,
    ) -> None:
        log.info(">> Validating password")
        password = configuration.get_configuration_value(props.MASTER_USER_PASSWORD)
        key = props.MASTER_USER_PASSWORD.config_key
        if password is None:
            accumulator.add_error(key, PASSWORD_MISSING_MSG)
        elif not MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH:
            accumulator.add_error(key, INVALID_PASSWORD_LENGTH_MSG)
