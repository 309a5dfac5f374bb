"""Host-facing data model: configuration properties, templates and instance state.

The Director hands the plugin string-valued configuration keyed by property.
Each plugin declares its properties as ``ConfigurationProperty`` tables; values
are always read back through ``get_configuration_value`` so that defaults are
applied in exactly one place.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable


class InstanceStatus(Enum):
    """Lifecycle status reported back to the host."""

    PENDING = "pending"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    UNKNOWN = "unknown"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class InstanceState:
    status: InstanceStatus
    status_message: str | None = None


UNKNOWN_STATE = InstanceState(InstanceStatus.UNKNOWN)


class Widget(Enum):
    TEXT = "text"
    PASSWORD = "password"
    LIST = "list"
    OPENLIST = "openlist"
    MULTI = "multi"
    CHECKBOX = "checkbox"
    NUMBER = "number"
    FILE = "file"


@dataclass(frozen=True, slots=True)
class ConfigurationProperty:
    """Declaration of one configuration key understood by a plugin component.

    Attributes:
        config_key: Key under which the host stores the value.
        name: Human readable name.
        description: Longer help text.
        default_value: Value used when the host supplies none.
        required: Whether the host must supply a value.
        valid_values: Suggested values shown to the user.
        sensitive: Whether the value must be masked (passwords, keys).
        widget: Input widget hint.
    """

    config_key: str
    name: str
    description: str = ""
    default_value: str | None = None
    required: bool = False
    valid_values: tuple[str, ...] = ()
    sensitive: bool = False
    widget: Widget = Widget.TEXT


@dataclass(frozen=True, slots=True)
class DisplayProperty:
    display_key: str
    name: str
    description: str = ""
    sensitive: bool = False


@runtime_checkable
class Configured(Protocol):
    """Anything that can answer configuration lookups."""

    def get_configuration_value(self, prop: ConfigurationProperty) -> str | None: ...


@dataclass(frozen=True, slots=True)
class SimpleConfiguration:
    values: Mapping[str, str] = field(default_factory=dict)

    def get_configuration_value(self, prop: ConfigurationProperty) -> str | None:
        value = self.values.get(prop.config_key)
        if value is None:
            return prop.default_value
        return value


@dataclass(frozen=True, slots=True)
class InstanceTemplate:
    """Validated, immutable description of instances to create."""

    name: str
    configuration: SimpleConfiguration = field(default_factory=SimpleConfiguration)
    tags: Mapping[str, str] = field(default_factory=dict)

    def get_configuration_value(self, prop: ConfigurationProperty) -> str | None:
        return self.configuration.get_configuration_value(prop)


@dataclass(frozen=True, slots=True)
class ResourceProviderMetadata:
    provider_id: str
    name: str
    description: str
    provider_properties: tuple[ConfigurationProperty, ...] = ()
    template_properties: tuple[ConfigurationProperty, ...] = ()
    display_properties: tuple[DisplayProperty, ...] = ()


@dataclass(frozen=True, slots=True)
class CloudProviderMetadata:
    provider_id: str
    name: str
    description: str
    credentials_properties: tuple[ConfigurationProperty, ...] = ()
    resource_providers: tuple[ResourceProviderMetadata, ...] = ()

    def resource_provider(self, provider_id: str) -> ResourceProviderMetadata:
        for metadata in self.resource_providers:
            if metadata.provider_id == provider_id:
                return metadata
        raise KeyError(f"Resource provider '{provider_id}' not found")


INSTANCE_NAME_PREFIX = ConfigurationProperty(
    config_key="instanceNamePrefix",
    name="Instance name prefix",
    description="Prefix used when generating instance names.",
    default_value="director",
)

