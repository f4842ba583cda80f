"""
resource-namer: Standardized resource name generation.

This library provides:
- Composition of names from ordered, configurable components
- Per-resource-type validation (characters, length, regex)
- Existence checks against a pluggable oracle (in-memory or Azure)
- Conflict resolution (Fail, NotifyOnly, AutoIncrement, SuffixRandom)

Example:
    from resource_namer import (
        InMemoryConfigurationSource,
        NameRequest,
        NamingService,
        NamingSettings,
    )

    source = InMemoryConfigurationSource.from_yaml("naming.yaml")
    service = NamingService(source)
    response = await service.request_name(
        NameRequest.from_dict({"ResourceEnvironment": "dev", "ResourceInstance": "001"}),
        "st",
        NamingSettings(),
    )
"""

# ---------------------------------------------------------------------------
# Lazy imports
# ---------------------------------------------------------------------------
# AzureExistenceOracle is imported lazily via __getattr__ below so that the
# naming engine can be imported without pulling in the HTTP client stack.
# ---------------------------------------------------------------------------
from typing import TYPE_CHECKING

from .catalog import ComponentCatalog, DelimiterResolver, ResourceDelimiter
from .composer import CompositionResult, compose
from .config import CacheSettings, ConflictResolutionSettings, NamingSettings, load_settings
from .exceptions import (
    ComponentNotFoundError,
    ConfigurationError,
    InvalidDelimiterError,
    OracleError,
    OracleTimeoutError,
    OracleUnavailableError,
    ResourceNamerError,
    ResourceTypeNotFoundError,
    ValidationError,
)
from .models import (
    Component,
    ComponentContribution,
    ComponentOption,
    ConflictResolutionOutcome,
    ConflictStrategy,
    CustomComponentOption,
    ExistenceResult,
    GeneratedName,
    NameRequest,
    NameResponse,
    ResourceType,
    ValidationOutcome,
)
from .naming import NOT_GENERATED
from .oracle import CachedExistenceOracle, ExistenceOracle, InMemoryExistenceOracle
from .repository import InMemoryConfigurationSource, InMemoryNameHistory
from .repository_protocol import ConfigurationSource, NameHistoryStore
from .resolver import ConflictResolver, SyncConflictResolver
from .service import NamingService, SyncNamingService
from .validation_cache import CacheStats, ValidationCache
from .validator import validate

if TYPE_CHECKING:
    from .azure import AzureExistenceOracle as AzureExistenceOracle

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Main classes
    "NamingService",
    "SyncNamingService",
    "ConflictResolver",
    "SyncConflictResolver",
    "ComponentCatalog",
    "DelimiterResolver",
    "ResourceDelimiter",
    "ValidationCache",
    "CacheStats",
    # Pipeline functions
    "compose",
    "validate",
    "CompositionResult",
    # Oracles
    "ExistenceOracle",
    "CachedExistenceOracle",
    "InMemoryExistenceOracle",
    "AzureExistenceOracle",
    # Collaborators
    "ConfigurationSource",
    "NameHistoryStore",
    "InMemoryConfigurationSource",
    "InMemoryNameHistory",
    # Configuration
    "NamingSettings",
    "ConflictResolutionSettings",
    "CacheSettings",
    "load_settings",
    # Models
    "Component",
    "ComponentOption",
    "CustomComponentOption",
    "ResourceType",
    "NameRequest",
    "NameResponse",
    "GeneratedName",
    "ComponentContribution",
    "ValidationOutcome",
    "ExistenceResult",
    "ConflictResolutionOutcome",
    "ConflictStrategy",
    "NOT_GENERATED",
    # Exceptions - Base
    "ResourceNamerError",
    # Exceptions - Categories
    "ConfigurationError",
    "OracleError",
    # Exceptions - Configuration
    "ResourceTypeNotFoundError",
    "InvalidDelimiterError",
    "ComponentNotFoundError",
    # Exceptions - Validation
    "ValidationError",
    # Exceptions - Oracle
    "OracleUnavailableError",
    "OracleTimeoutError",
]


def __getattr__(name: str) -> type:
    """Lazy import for the Azure oracle (requires httpx).

    See Also:
        PEP 562 -- Module __getattr__ and __dir__
    """
    if name == "AzureExistenceOracle":
        from .azure import AzureExistenceOracle

        return AzureExistenceOracle
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
