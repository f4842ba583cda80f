"""Tests for the component catalog and delimiter resolver."""

import pytest

from resource_namer.catalog import (
    ComponentCatalog,
    DelimiterResolver,
    ResourceDelimiter,
    ResolvedValue,
)
from resource_namer.exceptions import ComponentNotFoundError, InvalidDelimiterError, ValidationError
from resource_namer.models import Component, ComponentOption, NameRequest, ResourceType
from resource_namer.naming import BUILTIN_COMPONENTS


class TestComponentCatalog:
    """Tests for ComponentCatalog."""

    def test_default_order(self) -> None:
        """The default catalog lists every built-in in order, dense from 1."""
        catalog = ComponentCatalog.default()
        components = catalog.components()
        assert [c.name for c in components] == list(BUILTIN_COMPONENTS)
        assert [c.sort_order for c in components] == list(range(1, 9))

    def test_missing_builtins_added_disabled(self) -> None:
        """Built-ins absent from the input are present but disabled."""
        catalog = ComponentCatalog(
            [Component("ResourceType", sort_order=1), Component("ResourceEnvironment", sort_order=2)]
        )
        assert len(catalog) == len(BUILTIN_COMPONENTS)
        assert [c.name for c in catalog.components()] == ["ResourceType", "ResourceEnvironment"]
        assert catalog.get("ResourceLocation").enabled is False

    def test_sort_order_is_dense(self) -> None:
        """Gaps and duplicates in sort order are renumbered 1..N."""
        catalog = ComponentCatalog(
            [
                Component("ResourceInstance", sort_order=40),
                Component("ResourceType", sort_order=5),
                Component("ResourceEnvironment", sort_order=5),
            ]
        )
        enabled = catalog.components()
        assert [(c.name, c.sort_order) for c in enabled] == [
            ("ResourceEnvironment", 1),
            ("ResourceType", 2),
            ("ResourceInstance", 3),
        ]
        disabled = [c for c in catalog.components(include_disabled=True) if not c.enabled]
        assert [c.sort_order for c in disabled] == list(range(4, 4 + len(disabled)))

    def test_builtin_cannot_be_custom(self) -> None:
        """Built-in names are forced to non-custom."""
        catalog = ComponentCatalog([Component("ResourceOrg", is_custom=True, is_free_text=True)])
        component = catalog.get("ResourceOrg")
        assert component.is_custom is False
        assert component.is_free_text is False

    def test_get_by_normalized_name(self) -> None:
        """Lookup accepts the normalized spelling."""
        catalog = ComponentCatalog.default()
        assert catalog.get("unit dept").name == "ResourceUnitDept"
        assert "UnitDept" in catalog
        assert "Nope" not in catalog

    def test_get_missing(self) -> None:
        """Unknown names raise ComponentNotFoundError."""
        with pytest.raises(ComponentNotFoundError) as exc_info:
            ComponentCatalog.default().get("Nope")
        assert exc_info.value.name == "Nope"

    def test_add_custom(self) -> None:
        """Custom components are appended after the enabled components."""
        catalog = ComponentCatalog.default().add_custom("App", "Application", is_free_text=True)
        app = catalog.get("App")
        assert app.is_custom and app.is_free_text
        assert app.sort_order == 9
        assert catalog.components()[-1].name == "App"

    def test_add_custom_rejects_reserved_and_duplicates(self) -> None:
        """Reserved and existing names cannot be added."""
        catalog = ComponentCatalog.default().add_custom("App")
        with pytest.raises(ValidationError):
            catalog.add_custom("ResourceType")
        with pytest.raises(ValueError, match="already exists"):
            catalog.add_custom("App")

    def test_catalog_is_immutable(self) -> None:
        """Writes return a new catalog and leave the original untouched."""
        catalog = ComponentCatalog.default()
        updated = catalog.add_custom("App")
        assert "App" in updated
        assert "App" not in catalog

    def test_without_component(self) -> None:
        """Custom components are removed; built-ins are only disabled."""
        catalog = ComponentCatalog.default().add_custom("App")
        catalog = catalog.without_component("App").without_component("ResourceOrg")
        assert "App" not in catalog
        assert catalog.get("ResourceOrg").enabled is False
        assert len(catalog) == len(BUILTIN_COMPONENTS)

    def test_set_enabled(self) -> None:
        """Re-enabled components move to the end of the enabled list."""
        catalog = ComponentCatalog.default().set_enabled("ResourceOrg", False)
        assert "ResourceOrg" not in [c.name for c in catalog.components()]
        catalog = catalog.set_enabled("ResourceOrg", True)
        assert catalog.components()[-1].name == "ResourceOrg"

    def test_reorder(self) -> None:
        """Named components come first, the rest keep their relative order."""
        catalog = ComponentCatalog.default().reorder(["ResourceInstance", "ResourceType"])
        names = [c.name for c in catalog.components()]
        assert names[:3] == ["ResourceInstance", "ResourceType", "ResourceEnvironment"]
        assert len(names) == len(BUILTIN_COMPONENTS)

    def test_from_dicts(self) -> None:
        """Catalogs load from plain dictionaries."""
        catalog = ComponentCatalog.from_dicts(
            [{"name": "ResourceType", "sort_order": 1}, {"name": "Tier", "is_custom": True}]
        )
        assert catalog.get("Tier").is_custom


class TestAccessors:
    """Tests for the accessor dispatch table."""

    def test_builtin_value_is_lower_cased(self) -> None:
        """Built-ins resolve to the lower-cased short name with a descriptive label."""
        catalog = ComponentCatalog.default()
        request = NameRequest(values={"ResourceEnvironment": ComponentOption("DEV", "Development")})
        resolved = catalog.accessor("ResourceEnvironment")(request, ResourceType(short_name="rg"))
        assert resolved == ResolvedValue("dev", "Development (dev)")

    def test_type_defaults_to_composed_type(self) -> None:
        """ResourceType falls back to the type being composed."""
        catalog = ComponentCatalog.default()
        rtype = ResourceType(short_name="st", resource="Storage/storageAccounts")
        resolved = catalog.accessor("ResourceType")(NameRequest(), rtype)
        assert resolved == ResolvedValue("st", "Storage/storageAccounts (st)")

    def test_instance_and_custom_are_verbatim(self) -> None:
        """Instance and custom values are used as supplied."""
        catalog = ComponentCatalog.default().add_custom("App", is_free_text=True)
        request = NameRequest(
            values={"ResourceInstance": "001"}, custom_components={"app": "Billing"}
        )
        rtype = ResourceType(short_name="rg")
        assert catalog.accessor("ResourceInstance")(request, rtype) == ResolvedValue("001", "001")
        assert catalog.accessor("App")(request, rtype) == ResolvedValue("Billing", "Billing")

    def test_missing_value(self) -> None:
        """Absent values resolve to None."""
        catalog = ComponentCatalog.default()
        assert catalog.accessor("ResourceOrg")(NameRequest(), ResourceType(short_name="rg")) is None

    def test_unknown_accessor(self) -> None:
        """Accessor lookup for an unknown component raises."""
        with pytest.raises(ComponentNotFoundError):
            ComponentCatalog.default().accessor("Nope")


class TestDelimiterResolver:
    """Tests for DelimiterResolver."""

    def test_default_is_dash(self) -> None:
        """The default configuration enables only the dash."""
        assert DelimiterResolver().get_active_delimiter() == "-"

    def test_first_enabled_by_sort_order(self) -> None:
        """The first enabled delimiter by sort order wins."""
        resolver = DelimiterResolver(
            [
                ResourceDelimiter("dash", "-", enabled=True, sort_order=2),
                ResourceDelimiter("underscore", "_", enabled=True, sort_order=1),
            ]
        )
        assert resolver.get_active_delimiter() == "_"

    def test_none_enabled(self) -> None:
        """No enabled delimiter means no delimiter."""
        resolver = DelimiterResolver([ResourceDelimiter("dash", "-", enabled=False)])
        assert resolver.get_active_delimiter() == ""

    def test_fixed(self) -> None:
        """fixed() builds a single-delimiter resolver."""
        assert DelimiterResolver.fixed(".").get_active_delimiter() == "."
        assert DelimiterResolver.fixed("").delimiters()[0].name == "none"

    def test_invalid_delimiter(self) -> None:
        """Unsupported delimiters are rejected on construction."""
        with pytest.raises(InvalidDelimiterError):
            ResourceDelimiter("slash", "/")
