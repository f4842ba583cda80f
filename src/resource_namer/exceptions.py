"""Exceptions for resource-namer."""

# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------


class ResourceNamerError(Exception):
    """
    Base exception for all resource-namer errors.

    All exceptions raised by this library inherit from this class,
    allowing callers to catch all library-specific errors with a single
    except clause.
    """

    pass


# ---------------------------------------------------------------------------
# Category Exceptions
# ---------------------------------------------------------------------------


class ConfigurationError(ResourceNamerError):
    """
    Base exception for configuration-related errors.

    This includes missing or disabled components, unknown resource types,
    malformed delimiters and malformed validation patterns.
    """

    pass


class OracleError(ResourceNamerError):
    """
    Base exception for existence-oracle errors.

    These never mean "the name is available". Callers must treat them as
    an unknown result.
    """

    pass


# ---------------------------------------------------------------------------
# Configuration Exceptions
# ---------------------------------------------------------------------------


class ResourceTypeNotFoundError(ConfigurationError):
    """Raised when a resource type cannot be resolved by short name or id."""

    def __init__(self, key: str, reason: str | None = None) -> None:
        self.key = key
        self.reason = reason
        msg = f"Resource type not found: {key}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class InvalidDelimiterError(ConfigurationError):
    """Raised when a delimiter is not one of the supported characters."""

    def __init__(self, delimiter: str, allowed: tuple[str, ...]) -> None:
        self.delimiter = delimiter
        self.allowed = allowed
        shown = ", ".join(repr(d) for d in allowed)
        super().__init__(f"Invalid delimiter {delimiter!r}. Allowed: {shown}")


class ComponentNotFoundError(ConfigurationError):
    """Raised when a component name is not present in the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Component not found: {name}")


# ---------------------------------------------------------------------------
# Validation Exceptions
# ---------------------------------------------------------------------------


class ValidationError(ResourceNamerError):
    """
    Raised when an input value fails validation.

    Attributes:
        field: Name of the field that failed
        value: The rejected value
        reason: Human-readable explanation
    """

    def __init__(self, field: str, value: str, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


# ---------------------------------------------------------------------------
# Oracle Exceptions
# ---------------------------------------------------------------------------


class OracleUnavailableError(OracleError):
    """
    Raised when the existence oracle cannot answer.

    Attributes:
        cause: The underlying exception, if any
        resource_type: Resource type being checked
        name: Candidate name being checked
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        *,
        resource_type: str | None = None,
        name: str | None = None,
    ) -> None:
        self.cause = cause
        self.resource_type = resource_type
        self.name = name
        super().__init__(self._format_message(message))

    def _format_message(self, message: str) -> str:
        parts = [message]
        context = []
        if self.resource_type:
            context.append(f"type={self.resource_type}")
        if self.name:
            context.append(f"name={self.name}")
        if context:
            parts.append(f"[{', '.join(context)}]")
        return " ".join(parts)


class OracleTimeoutError(OracleUnavailableError):
    """Raised when an existence check exceeds its per-call timeout."""

    def __init__(
        self,
        timeout_seconds: float,
        cause: Exception | None = None,
        *,
        resource_type: str | None = None,
        name: str | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Existence check timed out after {timeout_seconds:g}s",
            cause,
            resource_type=resource_type,
            name=name,
        )
