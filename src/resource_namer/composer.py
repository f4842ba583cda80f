"""Name composition.

``compose()`` walks the component catalog in sort order and assembles a
candidate name from the request. It is a pure function: every deficiency
found during the single left-to-right pass is accumulated into the
result's message instead of being raised.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .catalog import Accessor, ComponentCatalog, build_accessors
from .models import (
    Component,
    ComponentContribution,
    ComponentOption,
    CustomComponentOption,
    NameRequest,
    ResourceType,
)
from .naming import RESOURCE_INSTANCE, RESOURCE_TYPE, is_numeric, normalize_component_name

STATIC_VALUE_MESSAGE = (
    "The requested Resource Type name is considered a static value with specific "
    "requirements. Please refer to "
    "https://docs.microsoft.com/en-us/azure/azure-resource-manager/management/resource-name-rules "
    "for additional information."
)
REQUIRED_COMPONENTS_MESSAGE = "You must supply the required components."
DELIMITER_REMOVED_MESSAGE = (
    "The specified delimiter is not allowed for this resource type and has been removed."
)
NUMERIC_INSTANCE_MESSAGE = "Resource Instance must be a numeric value."


@dataclass(frozen=True)
class CompositionResult:
    """
    Candidate name plus its breakdown.

    Attributes:
        success: False if any required value was missing or invalid
        name: Lower-cased candidate name (the static value, verbatim, for static types)
        contributions: Components that contributed, in order
        errors: Input errors found during the pass
        warnings: Non-fatal notes (e.g. delimiter removed)
        is_static: True when the resource type's static value was returned
    """

    success: bool
    name: str
    contributions: tuple[ComponentContribution, ...] = ()
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    is_static: bool = False
    missing_required: bool = field(default=False, repr=False)

    @property
    def message(self) -> str:
        """Single message listing every warning and deficiency."""
        parts: list[str] = []
        if self.is_static:
            parts.append(STATIC_VALUE_MESSAGE)
        if self.missing_required:
            parts.append(REQUIRED_COMPONENTS_MESSAGE)
        parts.extend(self.errors)
        parts.extend(self.warnings)
        return " ".join(parts)


def _allowed_custom_values(
    component: Component, custom_options: Iterable[CustomComponentOption] | None
) -> set[str] | None:
    if custom_options is None or component.is_free_text:
        return None
    allowed = {o.short_name for o in custom_options if o.normalized_parent == component.normalized_name}
    return allowed or None


def _allowed_builtin_values(
    component: Component, builtin_options: Mapping[str, Iterable[ComponentOption]] | None
) -> set[str] | None:
    if not builtin_options or component.name in (RESOURCE_TYPE, RESOURCE_INSTANCE):
        return None
    for key, options in builtin_options.items():
        if normalize_component_name(key) == component.normalized_name:
            return {o.short_name.lower() for o in options} or None
    return None


def compose(
    request: NameRequest,
    resource_type: ResourceType,
    components: ComponentCatalog | Iterable[Component],
    delimiter: str,
    *,
    include_disabled: bool = False,
    custom_options: Iterable[CustomComponentOption] | None = None,
    builtin_options: Mapping[str, Iterable[ComponentOption]] | None = None,
) -> CompositionResult:
    """
    Compose a candidate name for ``resource_type`` from ``request``.

    Args:
        request: Values supplied by the caller
        resource_type: Type whose optional/exclude/delimiter rules apply
        components: Catalog (or plain component list) to walk
        delimiter: Active delimiter ("" for none)
        include_disabled: Walk disabled components too (preview/admin mode)
        custom_options: Permitted custom component values; None skips the check
        builtin_options: Permitted values of built-in components, keyed by component
            name; components without an entry accept any value

    Returns:
        CompositionResult; never raises for input errors
    """
    if resource_type.static_value:
        return CompositionResult(success=True, name=resource_type.static_value, is_static=True)

    ordered: list[Component]
    accessors: Mapping[str, Accessor]
    if isinstance(components, ComponentCatalog):
        ordered = components.components(include_disabled=include_disabled)
        accessors = {c.name: components.accessor(c.name) for c in ordered}
    else:
        ordered = sorted(
            (c for c in components if include_disabled or c.enabled),
            key=lambda c: c.sort_order,
        )
        accessors = build_accessors(ordered)

    options = list(custom_options) if custom_options is not None else None
    exclude = resource_type.exclude_set
    optional = resource_type.optional_set

    name = ""
    contributions: list[ComponentContribution] = []
    errors: list[str] = []
    warnings: list[str] = []
    missing_required = False
    ignore_delimiter = False
    previous_applies_after = True
    instance_value: str | None = None

    for component in ordered:
        normalized = component.normalized_name
        applies_after = component.apply_delimiter_after
        if normalized in exclude:
            previous_applies_after = applies_after
            continue

        resolved = accessors[component.name](request, resource_type)
        if resolved is None:
            if normalized not in optional:
                missing_required = True
                errors.append(f"{component.name} value was not provided.")
            previous_applies_after = applies_after
            continue

        value = resolved.value
        if not component.min_length <= len(value) <= component.max_length:
            errors.append(
                f"{component.label} value length is invalid. The value must be between "
                f"{component.min_length} and {component.max_length} characters."
            )
            previous_applies_after = applies_after
            continue

        if component.is_custom:
            allowed = _allowed_custom_values(component, options)
            invalid = f"{component.name} value is not a valid custom component short name."
        else:
            allowed = _allowed_builtin_values(component, builtin_options)
            invalid = f"{component.name} value is invalid."
        if allowed is not None and value not in allowed:
            errors.append(invalid)
            previous_applies_after = applies_after
            continue

        if delimiter and not ignore_delimiter:
            if delimiter in resource_type.invalid_characters:
                warnings.append(DELIMITER_REMOVED_MESSAGE)
                ignore_delimiter = True
            elif (
                name
                and component.apply_delimiter_before
                and previous_applies_after
                and resource_type.apply_delimiter
            ):
                name += delimiter

        name += value
        contributions.append(ComponentContribution(component.name, resolved.label))
        if component.name == RESOURCE_INSTANCE:
            instance_value = value
        previous_applies_after = applies_after

    if instance_value is not None and not is_numeric(instance_value):
        errors.append(NUMERIC_INSTANCE_MESSAGE)

    return CompositionResult(
        success=not errors,
        name=name.lower(),
        contributions=tuple(contributions),
        errors=tuple(errors),
        warnings=tuple(warnings),
        missing_required=missing_required,
    )
