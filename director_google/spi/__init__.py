"""Contract between the Director host and this plugin."""

from director_google.spi.exceptions import (
    ConditionType,
    InvalidCredentialsError,
    PluginExceptionCondition,
    PluginExceptionConditionAccumulator,
    PluginExceptionDetails,
    ProviderError,
    TransientProviderError,
    UnrecoverableProviderError,
)
from director_google.spi.provider import ResourceProvider
from director_google.spi.model import (
    INSTANCE_NAME_PREFIX,
    UNKNOWN_STATE,
    CloudProviderMetadata,
    ConfigurationProperty,
    Configured,
    DisplayProperty,
    InstanceState,
    InstanceStatus,
    InstanceTemplate,
    ResourceProviderMetadata,
    SimpleConfiguration,
    Widget,
)

__all__ = [
    "INSTANCE_NAME_PREFIX",
    "UNKNOWN_STATE",
    "CloudProviderMetadata",
    "ConditionType",
    "ConfigurationProperty",
    "Configured",
    "DisplayProperty",
    "InstanceState",
    "InstanceStatus",
    "InstanceTemplate",
    "InvalidCredentialsError",
    "PluginExceptionCondition",
    "PluginExceptionConditionAccumulator",
    "PluginExceptionDetails",
    "ProviderError",
    "ResourceProvider",
    "ResourceProviderMetadata",
    "SimpleConfiguration",
    "TransientProviderError",
    "UnrecoverableProviderError",
    "Widget",
]
