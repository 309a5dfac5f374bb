"""Director plugin for Google Cloud Platform.

Provisions Compute Engine instances and, when enabled, Cloud SQL instances.

Example:

    from director_google import GoogleLauncher, SimpleConfiguration

    launcher = GoogleLauncher()
    launcher.initialize(config_dir)
    cloud = await launcher.create_cloud_provider(
        "google", SimpleConfiguration({"projectId": "my-project"}),
    )
    compute = await cloud.create_resource_provider(
        "compute", SimpleConfiguration({"region": "us-central1"}),
    )
"""

from loguru import logger

from director_google.cloud_provider import GoogleCloudProvider
from director_google.compute import GoogleComputeProvider
from director_google.config import GoogleConfig
from director_google.credentials import GoogleCredentials, GoogleCredentialsProvider
from director_google.launcher import GoogleLauncher
from director_google.observability import LogConfig
from director_google.spi import (
    InstanceState,
    InstanceStatus,
    InstanceTemplate,
    SimpleConfiguration,
)
from director_google.sql import GoogleCloudSQLProvider

logger.disable("director_google")

__version__ = "2.0.0"

__all__ = [
    "GoogleCloudProvider",
    "GoogleCloudSQLProvider",
    "GoogleComputeProvider",
    "GoogleConfig",
    "GoogleCredentials",
    "GoogleCredentialsProvider",
    "GoogleLauncher",
    "InstanceState",
    "InstanceStatus",
    "InstanceTemplate",
    "LogConfig",
    "SimpleConfiguration",
]
