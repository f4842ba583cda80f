"""Core models for resource-namer."""

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .naming import RESOURCE_INSTANCE, normalize_component_name, parse_name_set


class ConflictStrategy(Enum):
    """Strategy for resolving a name that already exists."""

    AUTO_INCREMENT = "AutoIncrement"  # bump the trailing instance number
    NOTIFY_ONLY = "NotifyOnly"  # keep the name, attach a warning
    FAIL = "Fail"  # reject without consulting the oracle
    SUFFIX_RANDOM = "SuffixRandom"  # append "-" + 6 random characters

    @classmethod
    def parse(cls, value: "str | ConflictStrategy") -> "ConflictStrategy":
        """Parse a strategy from its value or member name, case-insensitively."""
        if isinstance(value, cls):
            return value
        wanted = str(value).replace("_", "").replace("-", "").lower()
        for member in cls:
            if wanted in (member.value.lower(), member.name.replace("_", "").lower()):
                return member
        raise ValueError(f"Unknown conflict strategy: {value!r}")


@dataclass(frozen=True)
class Component:
    """
    A named, orderable contributor to a composed resource name.

    Attributes:
        name: Catalog identifier (e.g. "ResourceEnvironment" or a custom name)
        display_name: Human-readable label
        enabled: Disabled components are skipped unless previewing
        is_custom: True for administrator-defined components
        is_free_text: Custom component that accepts any value
        sort_order: Position in the composed name (1-based)
        parent_component: Owning component for nested custom values
        min_length: Minimum accepted value length
        max_length: Maximum accepted value length
        apply_delimiter_before: Insert the delimiter before this value
        apply_delimiter_after: Allow the delimiter after this value
    """

    name: str
    display_name: str = ""
    enabled: bool = True
    is_custom: bool = False
    is_free_text: bool = False
    sort_order: int = 0
    parent_component: str | None = None
    min_length: int = 1
    max_length: int = 10
    apply_delimiter_before: bool = True
    apply_delimiter_after: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("component name must not be empty")
        if self.min_length < 0:
            raise ValueError("min_length must not be negative")
        if self.max_length < self.min_length:
            raise ValueError("max_length must be >= min_length")

    @property
    def normalized_name(self) -> str:
        """Name as used in optional/exclude sets and custom component keys."""
        return normalize_component_name(self.name)

    @property
    def label(self) -> str:
        """Display name, falling back to the catalog name."""
        return self.display_name or self.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for storage."""
        return {
            "name": self.name,
            "display_name": self.display_name,
            "enabled": self.enabled,
            "is_custom": self.is_custom,
            "is_free_text": self.is_free_text,
            "sort_order": self.sort_order,
            "parent_component": self.parent_component,
            "min_length": self.min_length,
            "max_length": self.max_length,
            "apply_delimiter_before": self.apply_delimiter_before,
            "apply_delimiter_after": self.apply_delimiter_after,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Component":
        """Deserialize from dictionary."""
        return cls(
            name=data["name"],
            display_name=data.get("display_name", ""),
            enabled=bool(data.get("enabled", True)),
            is_custom=bool(data.get("is_custom", False)),
            is_free_text=bool(data.get("is_free_text", False)),
            sort_order=int(data.get("sort_order", 0)),
            parent_component=data.get("parent_component"),
            min_length=int(data.get("min_length", 1)),
            max_length=int(data.get("max_length", 10)),
            apply_delimiter_before=bool(data.get("apply_delimiter_before", True)),
            apply_delimiter_after=bool(data.get("apply_delimiter_after", True)),
        )


@dataclass(frozen=True)
class ComponentOption:
    """A selectable value of a built-in component (e.g. Development / dev)."""

    short_name: str
    name: str = ""

    @property
    def label(self) -> str:
        return self.name or self.short_name

    @classmethod
    def from_value(cls, value: "ComponentOption | Mapping[str, Any] | str") -> "ComponentOption":
        """Coerce a request value (option, mapping or bare short name)."""
        if isinstance(value, ComponentOption):
            return value
        if isinstance(value, Mapping):
            short = value.get("short_name", value.get("ShortName", ""))
            name = value.get("name", value.get("Name", value.get("resource", "")))
            return cls(short_name=str(short), name=str(name or ""))
        return cls(short_name=str(value))


@dataclass(frozen=True)
class CustomComponentOption:
    """A permitted value of a non-free-text custom component."""

    parent_component: str
    short_name: str
    name: str = ""

    @property
    def normalized_parent(self) -> str:
        return normalize_component_name(self.parent_component)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CustomComponentOption":
        """Deserialize from dictionary."""
        return cls(
            parent_component=data["parent_component"],
            short_name=str(data["short_name"]),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class ResourceType:
    """
    Naming constraints for one kind of resource.

    ``optional`` and ``exclude`` are comma-separated component names in any
    spelling; they are compared in normalized form. A non-empty
    ``static_value`` replaces composition entirely.
    """

    short_name: str
    resource: str = ""
    static_value: str = ""
    invalid_characters: str = ""
    optional: str = ""
    exclude: str = ""
    property_name: str = ""
    enabled: bool = True
    scope: str = ""
    length_min: int | None = None
    length_max: int | None = None
    regex: str = ""
    invalid_characters_start: str = ""
    invalid_characters_end: str = ""
    invalid_characters_consecutive: str = ""
    apply_delimiter: bool = True
    id: int = 0

    @property
    def optional_set(self) -> frozenset[str]:
        return parse_name_set(self.optional)

    @property
    def exclude_set(self) -> frozenset[str]:
        return parse_name_set(self.exclude)

    @property
    def is_global_scope(self) -> bool:
        """True for types whose names must be unique across the provider."""
        return self.scope.strip().lower() == "global"

    @property
    def type_name(self) -> str:
        """Resource name plus property, as recorded in naming history."""
        base = self.resource or self.short_name
        if self.property_name:
            return f"{base} - {self.property_name}"
        return base

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ResourceType":
        """Deserialize from dictionary."""

        def _int_or_none(value: Any) -> int | None:
            if value is None or value == "":
                return None
            return int(value)

        return cls(
            short_name=data["short_name"],
            resource=data.get("resource", ""),
            static_value=data.get("static_value", "") or "",
            invalid_characters=data.get("invalid_characters", "") or "",
            optional=data.get("optional", "") or "",
            exclude=data.get("exclude", "") or "",
            property_name=data.get("property", "") or "",
            enabled=bool(data.get("enabled", True)),
            scope=data.get("scope", "") or "",
            length_min=_int_or_none(data.get("length_min")),
            length_max=_int_or_none(data.get("length_max")),
            regex=data.get("regex", "") or "",
            invalid_characters_start=data.get("invalid_characters_start", "") or "",
            invalid_characters_end=data.get("invalid_characters_end", "") or "",
            invalid_characters_consecutive=data.get("invalid_characters_consecutive", "") or "",
            apply_delimiter=bool(data.get("apply_delimiter", True)),
            id=int(data.get("id", 0)),
        )


@dataclass(frozen=True)
class NameRequest:
    """
    Values supplied for one naming request.

    ``values`` is keyed by catalog component name. Built-in components map
    to a ``ComponentOption``; ``ResourceInstance`` maps to a digit string.
    ``custom_components`` holds custom and free-text values keyed by
    component name in any spelling.
    """

    values: Mapping[str, "ComponentOption | str"] = field(default_factory=dict)
    custom_components: Mapping[str, str] = field(default_factory=dict)
    created_by: str = "System"

    def option(self, component_name: str) -> ComponentOption | None:
        """The option supplied for a built-in component; bare strings are short names."""
        value = self.values.get(component_name)
        if value is None:
            return None
        return ComponentOption.from_value(value)

    @property
    def instance(self) -> str | None:
        value = self.values.get(RESOURCE_INSTANCE)
        if value is None:
            return None
        return value if isinstance(value, str) else value.short_name

    def custom_value(self, component_name: str) -> str | None:
        """Custom component value looked up by normalized name."""
        wanted = normalize_component_name(component_name)
        for key, value in self.custom_components.items():
            if normalize_component_name(key) == wanted:
                return value
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NameRequest":
        """
        Build a request from a flat mapping.

        Example:
            NameRequest.from_dict({
                "ResourceType": {"short_name": "st", "name": "Storage/storageAccounts"},
                "ResourceEnvironment": "dev",
                "ResourceInstance": "001",
                "custom_components": {"app": "billing"},
            })
        """
        values: dict[str, ComponentOption | str] = {}
        custom: dict[str, str] = {}
        created_by = "System"
        for key, value in data.items():
            if value is None:
                continue
            if key in ("custom_components", "CustomComponents"):
                custom.update({str(k): str(v) for k, v in value.items() if v is not None})
            elif key in ("created_by", "CreatedBy"):
                created_by = str(value)
            elif key == RESOURCE_INSTANCE:
                values[key] = str(value)
            else:
                values[key] = ComponentOption.from_value(value)
        return cls(values=values, custom_components=custom, created_by=created_by)


@dataclass(frozen=True)
class ComponentContribution:
    """One component's share of a composed name, kept for naming history."""

    component_name: str
    value_label: str

    def to_list(self) -> list[str]:
        return [self.component_name, self.value_label]


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating a name against its resource type."""

    valid: bool
    name: str
    message: str | None = None


@dataclass(frozen=True)
class ExistenceResult:
    """
    Answer from an existence oracle.

    Attributes:
        exists: True if at least one resource already uses the name
        conflicting_identifiers: Provider identifiers of conflicting resources
        performed: False when validation is disabled and nothing was checked
        warning: Advisory text from the provider, if any
        checked_at: Epoch seconds of the check
    """

    exists: bool
    conflicting_identifiers: tuple[str, ...] = ()
    performed: bool = True
    warning: str | None = None
    checked_at: float = field(default_factory=time.time)

    @classmethod
    def not_performed(cls, warning: str | None = None) -> "ExistenceResult":
        return cls(exists=False, performed=False, warning=warning)

    def to_dict(self) -> dict[str, Any]:
        return {
            "exists": self.exists,
            "conflicting_identifiers": list(self.conflicting_identifiers),
            "performed": self.performed,
            "warning": self.warning,
            "checked_at": self.checked_at,
        }


@dataclass
class ConflictResolutionOutcome:
    """
    Result of one conflict-resolution call.

    ``oracle_failure`` separates "the oracle could not answer" from
    "every candidate was taken".
    """

    original_name: str
    final_name: str
    strategy: ConflictStrategy
    success: bool = False
    attempts: int = 0
    warning: str | None = None
    error_message: str | None = None
    oracle_failure: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_name": self.original_name,
            "final_name": self.final_name,
            "strategy": self.strategy.value,
            "success": self.success,
            "attempts": self.attempts,
            "warning": self.warning,
            "error_message": self.error_message,
            "oracle_failure": self.oracle_failure,
        }


@dataclass
class GeneratedName:
    """Accepted name plus its component breakdown, handed to naming history."""

    resource_name: str
    resource_type_name: str
    components: list[ComponentContribution] = field(default_factory=list)
    created_by: str = "System"
    message: str = ""
    created_on: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource_name": self.resource_name,
            "resource_type_name": self.resource_type_name,
            "components": [c.to_list() for c in self.components],
            "created_by": self.created_by,
            "message": self.message,
            "created_on": self.created_on,
        }


@dataclass
class NameResponse:
    """Outcome of a full naming request."""

    success: bool
    resource_name: str
    message: str = ""
    details: GeneratedName | None = None
    resolution: ConflictResolutionOutcome | None = None
    existence: ExistenceResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "resource_name": self.resource_name,
            "message": self.message,
            "details": self.details.to_dict() if self.details else None,
            "resolution": self.resolution.to_dict() if self.resolution else None,
            "existence": self.existence.to_dict() if self.existence else None,
        }
