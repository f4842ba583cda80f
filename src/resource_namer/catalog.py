"""Component catalog and delimiter resolver.

The catalog is an immutable, ordered view of the configured components.
Write operations return a new catalog, and every catalog keeps the
built-in components present (possibly disabled) and renumbers enabled
components to a dense 1..N sort order.

Value lookup is an explicit dispatch table: one accessor per component,
built once when the catalog is created.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from .exceptions import ComponentNotFoundError
from .models import Component, ComponentOption, NameRequest, ResourceType
from .naming import (
    ALLOWED_DELIMITERS,
    BUILTIN_COMPONENTS,
    RESOURCE_INSTANCE,
    RESOURCE_TYPE,
    normalize_component_name,
    validate_custom_component_name,
    validate_delimiter,
)

_DEFAULT_DISPLAY_NAMES = {
    "ResourceType": "Resource Type",
    "ResourceEnvironment": "Environment",
    "ResourceLocation": "Location",
    "ResourceOrg": "Org",
    "ResourceProjAppSvc": "Project/App/Service",
    "ResourceUnitDept": "Unit/Department",
    "ResourceFunction": "Function",
    "ResourceInstance": "Instance",
}


@dataclass(frozen=True)
class ResolvedValue:
    """A component value plus the label recorded in naming history."""

    value: str
    label: str


Accessor = Callable[[NameRequest, ResourceType], ResolvedValue | None]


def _builtin_accessor(component_name: str) -> Accessor:
    def access(request: NameRequest, resource_type: ResourceType) -> ResolvedValue | None:
        option = request.option(component_name)
        if option is None or not option.short_name:
            return None
        short = option.short_name.lower()
        return ResolvedValue(value=short, label=f"{option.label} ({short})")

    return access


def _type_accessor(request: NameRequest, resource_type: ResourceType) -> ResolvedValue | None:
    # The type being composed supplies its own short name unless the request overrides it
    option = request.option(RESOURCE_TYPE) or ComponentOption(
        short_name=resource_type.short_name, name=resource_type.resource
    )
    if not option.short_name:
        return None
    short = option.short_name.lower()
    return ResolvedValue(value=short, label=f"{option.label} ({short})")


def _instance_accessor(request: NameRequest, resource_type: ResourceType) -> ResolvedValue | None:
    value = request.instance
    if not value:
        return None
    return ResolvedValue(value=value, label=value)


def _custom_accessor(component_name: str) -> Accessor:
    def access(request: NameRequest, resource_type: ResourceType) -> ResolvedValue | None:
        value = request.custom_value(component_name)
        if not value:
            return None
        return ResolvedValue(value=value, label=value)

    return access


def build_accessors(components: Iterable[Component]) -> dict[str, Accessor]:
    """Build the component name -> accessor dispatch table."""
    table: dict[str, Accessor] = {}
    for component in components:
        if component.name == RESOURCE_INSTANCE:
            table[component.name] = _instance_accessor
        elif component.name == RESOURCE_TYPE:
            table[component.name] = _type_accessor
        elif component.is_custom:
            table[component.name] = _custom_accessor(component.name)
        else:
            table[component.name] = _builtin_accessor(component.name)
    return table


def default_components() -> list[Component]:
    """Built-in components in their default order, all enabled."""
    return [
        Component(
            name=name,
            display_name=_DEFAULT_DISPLAY_NAMES[name],
            sort_order=index,
            max_length=5 if name == RESOURCE_INSTANCE else 10,
        )
        for index, name in enumerate(BUILTIN_COMPONENTS, start=1)
    ]


class ComponentCatalog:
    """
    Ordered list of named, enable/disable-able components.

    Example:
        catalog = ComponentCatalog.default().add_custom("App", is_free_text=True)
        for component in catalog.components():
            ...
    """

    def __init__(self, components: Iterable[Component] = ()) -> None:
        self._components = self._normalize(list(components))
        self._by_name = {c.name: c for c in self._components}
        self._by_normalized = {c.normalized_name: c for c in self._components}
        self._accessors = build_accessors(self._components)

    @classmethod
    def default(cls) -> "ComponentCatalog":
        return cls(default_components())

    @classmethod
    def from_dicts(cls, data: Iterable[Mapping[str, Any]]) -> "ComponentCatalog":
        return cls(Component.from_dict(item) for item in data)

    @staticmethod
    def _normalize(components: list[Component]) -> list[Component]:
        seen = {c.name for c in components}
        for name in BUILTIN_COMPONENTS:
            if name not in seen:
                components.append(
                    Component(
                        name=name,
                        display_name=_DEFAULT_DISPLAY_NAMES[name],
                        enabled=False,
                    )
                )
        # Built-in names are never custom
        components = [
            replace(c, is_custom=False, is_free_text=False) if c.name in BUILTIN_COMPONENTS else c
            for c in components
        ]

        enabled = sorted((c for c in components if c.enabled), key=lambda c: (c.sort_order, c.name))
        disabled = sorted(
            (c for c in components if not c.enabled), key=lambda c: (c.sort_order, c.name)
        )
        ordered = [replace(c, sort_order=i) for i, c in enumerate(enabled, start=1)]
        ordered += [replace(c, sort_order=i) for i, c in enumerate(disabled, start=len(ordered) + 1)]
        return ordered

    def components(self, include_disabled: bool = False) -> list[Component]:
        """Components in ascending sort order."""
        if include_disabled:
            return list(self._components)
        return [c for c in self._components if c.enabled]

    def get(self, name: str) -> Component:
        """
        Look up a component by catalog or normalized name.

        Raises:
            ComponentNotFoundError: If no component matches
        """
        component = self._by_name.get(name) or self._by_normalized.get(
            normalize_component_name(name)
        )
        if component is None:
            raise ComponentNotFoundError(name)
        return component

    def accessor(self, name: str) -> Accessor:
        try:
            return self._accessors[name]
        except KeyError:
            raise ComponentNotFoundError(name) from None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and (
            name in self._by_name or normalize_component_name(name) in self._by_normalized
        )

    def __len__(self) -> int:
        return len(self._components)

    # -------------------------------------------------------------------------
    # Configuration writes (return a new catalog)
    # -------------------------------------------------------------------------

    def with_component(self, component: Component) -> "ComponentCatalog":
        """Add or replace a component."""
        others = [c for c in self._components if c.name != component.name]
        return ComponentCatalog([*others, component])

    def add_custom(
        self,
        name: str,
        display_name: str = "",
        *,
        is_free_text: bool = False,
        min_length: int = 1,
        max_length: int = 10,
    ) -> "ComponentCatalog":
        """Append a custom component after the last enabled component."""
        validate_custom_component_name(name)
        if name in self:
            raise ValueError(f"Component already exists: {name}")
        component = Component(
            name=name,
            display_name=display_name or name,
            is_custom=True,
            is_free_text=is_free_text,
            sort_order=len(self.components()) + 1,
            min_length=min_length,
            max_length=max_length,
        )
        return self.with_component(component)

    def without_component(self, name: str) -> "ComponentCatalog":
        """Remove a custom component; built-in components are disabled instead."""
        component = self.get(name)
        if component.name in BUILTIN_COMPONENTS:
            return self.with_component(replace(component, enabled=False))
        return ComponentCatalog(c for c in self._components if c.name != component.name)

    def set_enabled(self, name: str, enabled: bool) -> "ComponentCatalog":
        component = self.get(name)
        # Re-enabled components go to the end of the enabled list
        sort_order = len(self.components()) + 1 if enabled and not component.enabled else component.sort_order
        return self.with_component(replace(component, enabled=enabled, sort_order=sort_order))

    def reorder(self, names: Iterable[str]) -> "ComponentCatalog":
        """Reorder enabled components; unnamed components keep their relative order after them."""
        wanted = [self.get(n).name for n in names]
        position = {name: i for i, name in enumerate(wanted, start=1)}
        offset = len(position)
        updated = [
            replace(c, sort_order=position.get(c.name, offset + c.sort_order))
            for c in self._components
        ]
        return ComponentCatalog(updated)


@dataclass(frozen=True)
class ResourceDelimiter:
    """A configured delimiter; the first enabled one by sort order is active."""

    name: str
    delimiter: str
    enabled: bool = True
    sort_order: int = 0

    def __post_init__(self) -> None:
        validate_delimiter(self.delimiter)


_DEFAULT_DELIMITERS = (
    ResourceDelimiter("dash", "-", enabled=True, sort_order=1),
    ResourceDelimiter("underscore", "_", enabled=False, sort_order=2),
    ResourceDelimiter("period", ".", enabled=False, sort_order=3),
    ResourceDelimiter("none", "", enabled=False, sort_order=4),
)


class DelimiterResolver:
    """Exposes the single currently-active delimiter character (or empty string)."""

    def __init__(self, delimiters: Iterable[ResourceDelimiter] = _DEFAULT_DELIMITERS) -> None:
        self._delimiters = sorted(delimiters, key=lambda d: d.sort_order)

    @classmethod
    def fixed(cls, delimiter: str) -> "DelimiterResolver":
        """Resolver whose only enabled delimiter is ``delimiter``."""
        return cls([ResourceDelimiter(_delimiter_name(delimiter), delimiter)])

    def get_active_delimiter(self) -> str:
        for delimiter in self._delimiters:
            if delimiter.enabled:
                return delimiter.delimiter
        return ""

    def delimiters(self) -> list[ResourceDelimiter]:
        return list(self._delimiters)


def _delimiter_name(delimiter: str) -> str:
    names = dict(zip(ALLOWED_DELIMITERS, ("dash", "underscore", "period", "none"), strict=True))
    return names[validate_delimiter(delimiter)]
