"""Name normalization helpers shared by the composer, validator and catalog.

Component names appear in three spellings across configuration data:
the catalog name (``"ResourceUnitDept"``), the display name
(``"Unit/Department"``) and the normalized form used by the per-type
``optional``/``exclude`` sets and custom component keys (``"unitdept"``).
"""

import re

from .exceptions import InvalidDelimiterError, ValidationError

NOT_GENERATED = "***RESOURCE NAME NOT GENERATED***"
"""Placeholder name returned with every failed naming response."""

RESOURCE_INSTANCE = "ResourceInstance"
RESOURCE_TYPE = "ResourceType"

BUILTIN_COMPONENTS: tuple[str, ...] = (
    "ResourceType",
    "ResourceEnvironment",
    "ResourceLocation",
    "ResourceOrg",
    "ResourceProjAppSvc",
    "ResourceUnitDept",
    "ResourceFunction",
    "ResourceInstance",
)
"""Reserved component names, in their default sort order."""

ALLOWED_DELIMITERS: tuple[str, ...] = ("-", "_", ".", "")

NUMERIC_PATTERN = re.compile(r"[0-9]+")

# Custom component names become request keys and normalized set members
CUSTOM_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9 ]*$")


def normalize_component_name(name: str) -> str:
    """
    Normalize a component name for set membership and dictionary keys.

    Strips the ``Resource`` prefix and spaces, then lower-cases, so
    ``"ResourceUnitDept"``, ``"UnitDept"`` and ``"unit dept"`` all become
    ``"unitdept"``.
    """
    return name.replace("Resource", "").replace(" ", "").lower()


def parse_name_set(value: str | None) -> frozenset[str]:
    """Parse a comma-separated component list into a normalized set."""
    if not value:
        return frozenset()
    return frozenset(
        normalize_component_name(part.strip()) for part in value.split(",") if part.strip()
    )


def is_numeric(value: str) -> bool:
    """True if ``value`` is made of decimal digits only."""
    return NUMERIC_PATTERN.fullmatch(value) is not None


def validate_delimiter(delimiter: str) -> str:
    """
    Validate the active delimiter.

    Raises:
        InvalidDelimiterError: If the delimiter is not supported
    """
    if delimiter not in ALLOWED_DELIMITERS:
        raise InvalidDelimiterError(delimiter, ALLOWED_DELIMITERS)
    return delimiter


def validate_custom_component_name(name: str) -> None:
    """
    Validate a custom component name before it is added to the catalog.

    Raises:
        ValidationError: If the name is empty, reserved or malformed
    """
    if not name or not name.strip():
        raise ValidationError("component", name, "Name cannot be empty")
    if name in BUILTIN_COMPONENTS:
        raise ValidationError("component", name, "Name is reserved for a built-in component")
    if not CUSTOM_NAME_PATTERN.match(name):
        raise ValidationError(
            "component",
            name,
            "Must start with a letter and contain only letters, digits and spaces.",
        )
    if not normalize_component_name(name):
        raise ValidationError("component", name, "Name is empty after normalization")
