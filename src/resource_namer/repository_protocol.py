"""Protocols for the naming engine's external collaborators.

The engine never persists anything itself. It reads configuration from a
``ConfigurationSource`` and hands accepted names to a ``NameHistoryStore``.
Both use ``typing.Protocol`` with ``@runtime_checkable``, so any object with
matching methods works without inheritance.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .catalog import ComponentCatalog
    from .models import ComponentOption, CustomComponentOption, GeneratedName, ResourceType


@runtime_checkable
class ConfigurationSource(Protocol):
    """
    Protocol for configuration backends.

    Example:
        class MySource:
            async def get_components(self) -> ComponentCatalog:
                ...

        assert isinstance(MySource(), ConfigurationSource)  # True at runtime
    """

    async def get_components(self) -> "ComponentCatalog":
        """The component catalog, including disabled components."""
        ...

    async def get_active_delimiter(self) -> str:
        """The single active delimiter ("" when none is enabled)."""
        ...

    async def get_resource_type(self, short_name_or_id: str | int) -> "ResourceType":
        """
        Resolve a resource type by short name or numeric id.

        Raises:
            ResourceTypeNotFoundError: If nothing (or more than one type) matches
        """
        ...

    async def get_custom_component_options(self) -> list["CustomComponentOption"]:
        """Permitted values of the non-free-text custom components."""
        ...

    async def get_component_options(self) -> Mapping[str, list["ComponentOption"]]:
        """
        Permitted values of built-in components, keyed by component name.

        A component missing from the mapping accepts any value.
        """
        ...


@runtime_checkable
class NameHistoryStore(Protocol):
    """Protocol for the store that records generated names."""

    async def save(self, generated_name: "GeneratedName") -> None:
        """Record an accepted name."""
        ...

    async def exists(self, name: str) -> bool:
        """True if ``name`` was generated before."""
        ...
