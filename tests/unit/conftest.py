"""Unit test fixtures."""

import textwrap
from pathlib import Path

import pytest

from resource_namer import (
    ComponentCatalog,
    CustomComponentOption,
    InMemoryConfigurationSource,
    InMemoryExistenceOracle,
    InMemoryNameHistory,
    NamingSettings,
    ResourceType,
)
from resource_namer.catalog import DelimiterResolver

OPTIONAL_COMPONENTS = (
    "ResourceOrg,ResourceLocation,ResourceUnitDept,ResourceFunction,ResourceProjAppSvc,App,Tier"
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep RESOURCE_NAMER_* variables from the host out of the tests."""
    for var in (
        "RESOURCE_NAMER_STRATEGY",
        "RESOURCE_NAMER_MAX_ATTEMPTS",
        "RESOURCE_NAMER_CACHE_TTL",
        "RESOURCE_NAMER_VALIDATION_ENABLED",
        "RESOURCE_NAMER_ORACLE_TIMEOUT",
        "RESOURCE_NAMER_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def rg_type() -> ResourceType:
    """Resource group type: scoped, delimiter allowed, most components optional."""
    return ResourceType(
        id=1,
        short_name="rg",
        resource="Resources/resourceGroups",
        optional=OPTIONAL_COMPONENTS,
        length_min=1,
        length_max=90,
        regex=r"^[a-zA-Z0-9._()-]{0,89}[a-zA-Z0-9_()-]$",
        invalid_characters_end=".",
    )


@pytest.fixture
def storage_type() -> ResourceType:
    """Storage account type: global scope, lower-case alphanumerics only."""
    return ResourceType(
        id=2,
        short_name="st",
        resource="Storage/storageAccounts",
        scope="global",
        invalid_characters="-_.",
        optional=OPTIONAL_COMPONENTS,
        length_min=3,
        length_max=24,
        regex=r"^[a-z0-9]{3,24}$",
    )


@pytest.fixture
def static_type() -> ResourceType:
    """Type whose name is fixed."""
    return ResourceType(id=3, short_name="fix", resource="Web/fixed", static_value="FixedName")


@pytest.fixture
def catalog() -> ComponentCatalog:
    """Default catalog plus a free-text and an option-backed custom component."""
    return (
        ComponentCatalog.default()
        .add_custom("App", "Application", is_free_text=True)
        .add_custom("Tier", "Tier")
    )


@pytest.fixture
def tier_options() -> list[CustomComponentOption]:
    return [
        CustomComponentOption("Tier", "web", "Web"),
        CustomComponentOption("Tier", "db", "Database"),
    ]


@pytest.fixture
def source(
    rg_type: ResourceType,
    storage_type: ResourceType,
    static_type: ResourceType,
    catalog: ComponentCatalog,
    tier_options: list[CustomComponentOption],
) -> InMemoryConfigurationSource:
    """Configuration source holding the three test resource types."""
    return InMemoryConfigurationSource(
        components=catalog,
        delimiters=DelimiterResolver.fixed("-"),
        resource_types=[rg_type, storage_type, static_type],
        custom_component_options=tier_options,
    )


@pytest.fixture
def history() -> InMemoryNameHistory:
    return InMemoryNameHistory()


@pytest.fixture
def oracle() -> InMemoryExistenceOracle:
    return InMemoryExistenceOracle()


@pytest.fixture
def settings() -> NamingSettings:
    """Validation enabled, AutoIncrement, small attempt budget."""
    return NamingSettings(validation_enabled=True).with_strategy("AutoIncrement", 10)


@pytest.fixture
def bundle_path(tmp_path: Path) -> Path:
    """YAML configuration bundle on disk."""
    path = tmp_path / "naming.yaml"
    path.write_text(
        textwrap.dedent(
            """\
            settings:
              validation_enabled: false
              conflict_resolution:
                strategy: AutoIncrement
                max_attempts: 5
            delimiters:
              - {name: dash, delimiter: "-", enabled: true, sort_order: 1}
              - {name: underscore, delimiter: "_", enabled: false, sort_order: 2}
            components:
              - {name: ResourceType, display_name: Resource Type, sort_order: 1}
              - {name: ResourceEnvironment, display_name: Environment, sort_order: 2}
              - {name: ResourceProjAppSvc, display_name: Project, sort_order: 3}
              - {name: ResourceInstance, display_name: Instance, sort_order: 4, max_length: 5}
              - {name: ResourceLocation, display_name: Location, enabled: false, sort_order: 5}
            resource_types:
              - id: 1
                short_name: rg
                resource: Resources/resourceGroups
                optional: ResourceProjAppSvc
                length_min: 1
                length_max: 90
              - id: 2
                short_name: st
                resource: Storage/storageAccounts
                scope: global
                invalid_characters: "-_."
                length_min: 3
                length_max: 24
                regex: "^[a-z0-9]{3,24}$"
            custom_component_options:
              - {parent_component: Tier, short_name: web, name: Web}
            component_options:
              ResourceEnvironment:
                - {short_name: dev, name: Development}
                - {short_name: prd, name: Production}
            """
        )
    )
    return path
