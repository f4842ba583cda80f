"""In-memory configuration source and naming history.

A configuration bundle is a YAML document with these optional sections::

    settings: {...}               # see config.load_settings
    delimiters:
      - {name: dash, delimiter: "-", enabled: true, sort_order: 1}
    components:
      - {name: ResourceType, sort_order: 1}
    resource_types:
      - {id: 1, short_name: st, resource: Storage/storageAccounts, ...}
    custom_component_options:
      - {parent_component: app, short_name: bil, name: Billing}
    component_options:
      ResourceEnvironment:
        - {short_name: dev, name: Development}
"""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from .catalog import ComponentCatalog, DelimiterResolver, ResourceDelimiter
from .exceptions import ConfigurationError, ResourceTypeNotFoundError
from .models import ComponentOption, CustomComponentOption, GeneratedName, ResourceType

logger = logging.getLogger(__name__)


def read_bundle(path: str | Path) -> Mapping[str, Any]:
    """
    Read a YAML configuration bundle.

    Raises:
        ConfigurationError: If the document is not a mapping
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return data


class InMemoryConfigurationSource:
    """
    Configuration held in memory, optionally loaded from a YAML bundle.

    Example:
        source = InMemoryConfigurationSource.from_yaml("naming.yaml")
        resource_type = await source.get_resource_type("st")
    """

    def __init__(
        self,
        components: ComponentCatalog | None = None,
        delimiters: DelimiterResolver | None = None,
        resource_types: Iterable[ResourceType] = (),
        custom_component_options: Iterable[CustomComponentOption] = (),
        component_options: Mapping[str, Iterable[ComponentOption]] | None = None,
    ) -> None:
        self.catalog = components or ComponentCatalog.default()
        self.delimiters = delimiters or DelimiterResolver()
        self._resource_types = list(resource_types)
        self._custom_options = list(custom_component_options)
        self._component_options = {
            name: list(options) for name, options in (component_options or {}).items()
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InMemoryConfigurationSource":
        """Build a source from a parsed configuration bundle."""
        components = data.get("components")
        delimiters = data.get("delimiters")
        return cls(
            components=ComponentCatalog.from_dicts(components) if components else None,
            delimiters=(
                DelimiterResolver(ResourceDelimiter(**d) for d in delimiters) if delimiters else None
            ),
            resource_types=[ResourceType.from_dict(t) for t in data.get("resource_types") or ()],
            custom_component_options=[
                CustomComponentOption.from_dict(o) for o in data.get("custom_component_options") or ()
            ],
            component_options={
                str(name): [ComponentOption.from_value(o) for o in options or ()]
                for name, options in (data.get("component_options") or {}).items()
            },
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "InMemoryConfigurationSource":
        source = cls.from_dict(read_bundle(path))
        logger.debug(
            "Loaded %d resource types and %d components from %s",
            len(source._resource_types),
            len(source.catalog),
            path,
        )
        return source

    @property
    def resource_types(self) -> list[ResourceType]:
        return list(self._resource_types)

    def add_resource_type(self, resource_type: ResourceType) -> None:
        self._resource_types.append(resource_type)

    def add_custom_component_option(self, option: CustomComponentOption) -> None:
        self._custom_options.append(option)

    def add_component_option(self, component_name: str, option: ComponentOption) -> None:
        self._component_options.setdefault(component_name, []).append(option)

    async def get_components(self) -> ComponentCatalog:
        return self.catalog

    async def get_active_delimiter(self) -> str:
        return self.delimiters.get_active_delimiter()

    async def get_resource_type(self, short_name_or_id: str | int) -> ResourceType:
        """
        Resolve a resource type by numeric id or by short name.

        Short names are not unique across properties (``st`` may exist for
        several storage sub-resources); an ambiguous short name must be
        disambiguated by id.

        Raises:
            ResourceTypeNotFoundError: If nothing matches or the short name is ambiguous
        """
        key = str(short_name_or_id)
        if isinstance(short_name_or_id, int) or key.isdigit():
            for resource_type in self._resource_types:
                if resource_type.id == int(key):
                    return resource_type
            raise ResourceTypeNotFoundError(key)

        matches = [t for t in self._resource_types if t.short_name == key]
        if not matches:
            raise ResourceTypeNotFoundError(key)
        if len(matches) > 1:
            ids = ", ".join(str(t.id) for t in matches)
            raise ResourceTypeNotFoundError(
                key, f"multiple resource types share this short name; use one of ids {ids}"
            )
        return matches[0]

    async def get_custom_component_options(self) -> list[CustomComponentOption]:
        return list(self._custom_options)

    async def get_component_options(self) -> dict[str, list[ComponentOption]]:
        return {name: list(options) for name, options in self._component_options.items()}


class InMemoryNameHistory:
    """Naming history kept in a list; lookups are case-insensitive."""

    def __init__(self) -> None:
        self.records: list[GeneratedName] = []

    async def save(self, generated_name: GeneratedName) -> None:
        self.records.append(generated_name)
        logger.debug("Recorded generated name %s", generated_name.resource_name)

    async def exists(self, name: str) -> bool:
        wanted = name.lower()
        return any(r.resource_name.lower() == wanted for r in self.records)
