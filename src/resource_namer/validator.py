"""Per-resource-type validation of composed names.

Checks run in a fixed order: character rules, length, then the type's
regex. Two normalizations may change the returned name even when it is
valid: lower-casing for types whose regex has no upper-case range, and
removing the delimiter when that is what stops the name from fitting the
length limit or the regex.
"""

import logging
import re

from .models import ResourceType, ValidationOutcome

logger = logging.getLogger(__name__)

LOWERCASE_MESSAGE = (
    "This resource type only allows lowercase names. "
    "The generated name has been updated to lowercase characters."
)
REGEX_FAILED_MESSAGE = "Regex failed - Please review the Resource Type Naming Guidelines."
REGEX_DELIMITER_REMOVED_MESSAGE = (
    "The specified delimiter was removed. This is often caused by the length of the name "
    "exceeding the max length or the delimiter not being an allowed character for the "
    "resource type."
)
TOO_SHORT_MESSAGE = "Generated name is less than the minimum length for the selected resource type."
TOO_LONG_MESSAGE = (
    "Generated name is more than the maximum length for the selected resource type. "
    "Please remove any optional components or contact your admin to update the required "
    "components for this resource type."
)
LENGTH_DELIMITER_REMOVED_MESSAGE = (
    "Generated name with the selected delimiter is more than the maximum length for the "
    "selected resource type. The delimiter has been removed."
)


def _character_errors(resource_type: ResourceType, name: str) -> list[str]:
    errors = []
    for c in dict.fromkeys(resource_type.invalid_characters):
        if c in name:
            errors.append(f"Name cannot contain the following character: {c}")
    for c in dict.fromkeys(resource_type.invalid_characters_start):
        if name.startswith(c):
            errors.append(f"Name cannot start with the following character: {c}")
    for c in dict.fromkeys(resource_type.invalid_characters_end):
        if name.endswith(c):
            errors.append(f"Name cannot end with the following character: {c}")
    for c in dict.fromkeys(resource_type.invalid_characters_consecutive):
        if c + c in name:
            errors.append(f"Name cannot contain the following consecutive character: {c}")
    return errors


def validate(resource_type: ResourceType, name: str, delimiter: str) -> ValidationOutcome:
    """
    Validate ``name`` against ``resource_type``'s structural rules.

    Args:
        resource_type: Type whose rules apply
        name: Candidate name from the composer
        delimiter: Active delimiter ("" for none)

    Returns:
        ValidationOutcome whose ``name`` supersedes the input when non-empty
    """
    if not name:
        return ValidationOutcome(valid=False, name=name, message="Name cannot be empty.")

    notes: list[str] = []
    errors: list[str] = []

    pattern: re.Pattern[str] | None = None
    if resource_type.regex:
        try:
            pattern = re.compile(resource_type.regex)
        except re.error as e:
            logger.warning("Invalid regex for resource type %s: %s", resource_type.short_name, e)
            return ValidationOutcome(
                valid=False,
                name=name,
                message=f"Resource type regex is invalid: {e}",
            )
        if "A-Z" not in resource_type.regex and name != name.lower():
            name = name.lower()
            notes.append(LOWERCASE_MESSAGE)

    # Trailing delimiter the type does not allow at the end
    if delimiter and delimiter in resource_type.invalid_characters_end:
        trimmed = name.rstrip(delimiter)
        if trimmed and trimmed != name:
            name = trimmed

    # (a) characters
    errors.extend(_character_errors(resource_type, name))

    # (b) length
    if resource_type.length_min is not None and len(name) < resource_type.length_min:
        errors.append(TOO_SHORT_MESSAGE)
    if resource_type.length_max is not None and len(name) > resource_type.length_max:
        stripped = name.replace(delimiter, "") if delimiter else name
        if len(stripped) > resource_type.length_max:
            errors.append(TOO_LONG_MESSAGE)
        else:
            name = stripped
            notes.append(LENGTH_DELIMITER_REMOVED_MESSAGE)

    # (c) regex
    if pattern is not None and not pattern.search(name):
        stripped = name.replace(delimiter, "") if delimiter else name
        if stripped != name and pattern.search(stripped):
            name = stripped
            notes.append(REGEX_DELIMITER_REMOVED_MESSAGE)
        else:
            errors.append(REGEX_FAILED_MESSAGE)

    message = " ".join(errors + notes) or None
    return ValidationOutcome(valid=not errors, name=name, message=message)
