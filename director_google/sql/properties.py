"""Configuration and display properties of the Cloud SQL provider."""

from __future__ import annotations

from director_google.spi import (
    INSTANCE_NAME_PREFIX,
    ConfigurationProperty,
    DisplayProperty,
    Widget,
)

# Provider

REGION_SQL = ConfigurationProperty(
    config_key="region_sql",
    name="Region",
    description="ID of the Google Cloud SQL region to use.",
    default_value="us-central",
    valid_values=("us-central", "asia-east1", "europe-west1"),
    widget=Widget.OPENLIST,
)

PROVIDER_PROPERTIES = (REGION_SQL,)

# Template

TIER = ConfigurationProperty(
    config_key="tier",
    name="Tier",
    description=(
        "The tier of your database. This affects performance and how much you will be charged."
    ),
    default_value="D1",
    valid_values=("D0", "D1", "D2", "D4", "D8", "D16", "D32"),
    required=True,
    widget=Widget.OPENLIST,
)

MASTER_USERNAME = ConfigurationProperty(
    config_key="adminUsername",
    name="Master username",
    description=(
        "The name of the master user for the client DB instance. "
        "Username may contain up to 16 characters."
    ),
    required=True,
)

MASTER_USER_PASSWORD = ConfigurationProperty(
    config_key="adminPassword",
    name="Master user password",
    description=(
        "The password for the master database user. Password may contain up to 16 characters."
    ),
    required=True,
    sensitive=True,
    widget=Widget.PASSWORD,
)

PREFERRED_LOCATION = ConfigurationProperty(
    config_key="preferredLocation",
    name="Preferred Location Zone",
    description=(
        "A Compute Engine zone to keep the data close to, reducing latency and improving "
        "availability for services hosted there."
    ),
    widget=Widget.OPENLIST,
)

ENGINE = ConfigurationProperty(
    config_key="type",
    name="DB engine",
    description="The name of the database engine to be used for this instance.",
    default_value="MYSQL",
    valid_values=("MYSQL",),
    required=True,
    widget=Widget.LIST,
)

TEMPLATE_PROPERTIES = (
    INSTANCE_NAME_PREFIX,
    TIER,
    MASTER_USERNAME,
    MASTER_USER_PASSWORD,
    PREFERRED_LOCATION,
    ENGINE,
)

# Display

DATABASE_INSTANCE_ID = DisplayProperty(
    "DatabaseInstanceId", "Database Instance ID", "The ID of the database instance.",
)
REGION = DisplayProperty("region", "Region", "The region the database instance runs in.")
INSTANCE_TIER = DisplayProperty("tier", "Tier", "The tier of the database instance.")

DISPLAY_PROPERTIES = (DATABASE_INSTANCE_ID, REGION, INSTANCE_TIER)
