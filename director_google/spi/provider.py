"""Capability set shared by the Compute Engine and Cloud SQL resource providers.

Both providers implement this protocol independently; there is no shared
base class and no shared mutable state between them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

from director_google.spi.exceptions import PluginExceptionConditionAccumulator
from director_google.spi.model import (
    InstanceState,
    InstanceTemplate,
    ResourceProviderMetadata,
    SimpleConfiguration,
)


@runtime_checkable
class ResourceProvider[I](Protocol):
    """Allocates, finds and deletes one kind of resource.

    Type Parameters
    ---------------
    I
        Instance handle returned by ``find``.
    """

    @property
    def metadata(self) -> ResourceProviderMetadata: ...

    def create_resource_template(
        self, name: str, configuration: SimpleConfiguration, tags: Mapping[str, str],
    ) -> InstanceTemplate: ...

    async def validate_template(
        self,
        configuration: SimpleConfiguration,
        accumulator: PluginExceptionConditionAccumulator,
    ) -> None: ...

    async def allocate(
        self, template: InstanceTemplate, instance_ids: Sequence[str], min_count: int,
    ) -> list[str]: ...

    async def find(
        self, template: InstanceTemplate, instance_ids: Sequence[str],
    ) -> list[I]: ...

    async def get_instance_state(
        self, template: InstanceTemplate, instance_ids: Sequence[str],
    ) -> dict[str, InstanceState]: ...

    async def delete(
        self, template: InstanceTemplate, instance_ids: Sequence[str],
    ) -> None: ...
