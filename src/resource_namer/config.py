"""Settings snapshot for name validation and conflict resolution.

Settings are plain frozen dataclasses passed explicitly to every engine
call. ``load_settings()`` builds one from a YAML file with environment
variable overrides.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .models import ConflictStrategy

STRATEGY_ENV_VAR = "RESOURCE_NAMER_STRATEGY"
MAX_ATTEMPTS_ENV_VAR = "RESOURCE_NAMER_MAX_ATTEMPTS"
CACHE_TTL_ENV_VAR = "RESOURCE_NAMER_CACHE_TTL"
VALIDATION_ENABLED_ENV_VAR = "RESOURCE_NAMER_VALIDATION_ENABLED"
TIMEOUT_ENV_VAR = "RESOURCE_NAMER_ORACLE_TIMEOUT"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ConflictResolutionSettings:
    """How a name that already exists is handled."""

    strategy: ConflictStrategy = ConflictStrategy.NOTIFY_ONLY
    max_attempts: int = 100
    include_warnings: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConflictResolutionSettings:
        return cls(
            strategy=ConflictStrategy.parse(data.get("strategy", ConflictStrategy.NOTIFY_ONLY)),
            max_attempts=int(data.get("max_attempts", 100)),
            include_warnings=bool(data.get("include_warnings", True)),
        )


@dataclass(frozen=True)
class CacheSettings:
    """Validity window for cached existence checks."""

    enabled: bool = True
    duration_minutes: int = 5

    @property
    def ttl_seconds(self) -> int:
        """Cache TTL in seconds (0 when caching is disabled)."""
        if not self.enabled:
            return 0
        return max(0, self.duration_minutes) * 60

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CacheSettings:
        return cls(
            enabled=bool(data.get("enabled", True)),
            duration_minutes=int(data.get("duration_minutes", 5)),
        )


@dataclass(frozen=True)
class NamingSettings:
    """
    Complete settings snapshot for one naming call.

    Attributes:
        validation_enabled: Consult the existence oracle after composition
        conflict_resolution: Strategy and retry budget
        cache: Existence-check cache window
        oracle_timeout_seconds: Per-call timeout at the oracle boundary
        tenant_id: Azure tenant used by the Azure oracle
        subscription_ids: Azure subscriptions scoped by the Azure oracle
        duplicate_names_allowed: Accept names already in the naming history
            when the existence oracle is not consulted
    """

    validation_enabled: bool = False
    conflict_resolution: ConflictResolutionSettings = field(
        default_factory=ConflictResolutionSettings
    )
    cache: CacheSettings = field(default_factory=CacheSettings)
    oracle_timeout_seconds: float = 5.0
    tenant_id: str = ""
    subscription_ids: tuple[str, ...] = ()
    duplicate_names_allowed: bool = True

    def __post_init__(self) -> None:
        if self.oracle_timeout_seconds <= 0:
            raise ValueError("oracle_timeout_seconds must be positive")

    @property
    def strategy(self) -> ConflictStrategy:
        return self.conflict_resolution.strategy

    @property
    def include_warnings(self) -> bool:
        return self.conflict_resolution.include_warnings

    @property
    def max_attempts(self) -> int:
        return self.conflict_resolution.max_attempts

    def with_strategy(
        self, strategy: ConflictStrategy | str, max_attempts: int | None = None
    ) -> NamingSettings:
        """Copy of these settings with a different strategy."""
        conflict = replace(
            self.conflict_resolution,
            strategy=ConflictStrategy.parse(strategy),
            max_attempts=max_attempts or self.conflict_resolution.max_attempts,
        )
        return replace(self, conflict_resolution=conflict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "validation_enabled": self.validation_enabled,
            "conflict_resolution": {
                "strategy": self.conflict_resolution.strategy.value,
                "max_attempts": self.conflict_resolution.max_attempts,
                "include_warnings": self.conflict_resolution.include_warnings,
            },
            "cache": {
                "enabled": self.cache.enabled,
                "duration_minutes": self.cache.duration_minutes,
            },
            "oracle_timeout_seconds": self.oracle_timeout_seconds,
            "tenant_id": self.tenant_id,
            "subscription_ids": list(self.subscription_ids),
            "duplicate_names_allowed": self.duplicate_names_allowed,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NamingSettings:
        return cls(
            validation_enabled=bool(data.get("validation_enabled", False)),
            conflict_resolution=ConflictResolutionSettings.from_dict(
                data.get("conflict_resolution") or {}
            ),
            cache=CacheSettings.from_dict(data.get("cache") or {}),
            oracle_timeout_seconds=float(data.get("oracle_timeout_seconds", 5.0)),
            tenant_id=str(data.get("tenant_id", "") or ""),
            subscription_ids=tuple(data.get("subscription_ids") or ()),
            duplicate_names_allowed=bool(data.get("duplicate_names_allowed", True)),
        )


def apply_environment(settings: NamingSettings) -> NamingSettings:
    """
    Apply environment variable overrides to a settings snapshot.

    Recognized variables: ``RESOURCE_NAMER_STRATEGY``,
    ``RESOURCE_NAMER_MAX_ATTEMPTS``, ``RESOURCE_NAMER_CACHE_TTL`` (minutes,
    0 disables), ``RESOURCE_NAMER_VALIDATION_ENABLED`` and
    ``RESOURCE_NAMER_ORACLE_TIMEOUT`` (seconds).
    """
    strategy = os.environ.get(STRATEGY_ENV_VAR)
    max_attempts = os.environ.get(MAX_ATTEMPTS_ENV_VAR)
    if strategy or max_attempts:
        settings = settings.with_strategy(
            strategy or settings.strategy,
            int(max_attempts) if max_attempts else None,
        )

    cache_ttl = os.environ.get(CACHE_TTL_ENV_VAR)
    if cache_ttl is not None:
        minutes = int(cache_ttl)
        settings = replace(settings, cache=CacheSettings(enabled=minutes > 0, duration_minutes=minutes))

    enabled = os.environ.get(VALIDATION_ENABLED_ENV_VAR)
    if enabled is not None:
        settings = replace(settings, validation_enabled=enabled.strip().lower() in _TRUE_VALUES)

    timeout = os.environ.get(TIMEOUT_ENV_VAR)
    if timeout is not None:
        settings = replace(settings, oracle_timeout_seconds=float(timeout))

    return settings


def load_settings(path: str | Path | None = None) -> NamingSettings:
    """Load settings from a YAML file (``settings:`` section or top level) plus environment."""
    data: Mapping[str, Any] = {}
    if path is not None:
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, Mapping):
            raise ValueError(f"Expected a mapping in {path}, got {type(loaded).__name__}")
        data = loaded.get("settings", loaded)
    return apply_environment(NamingSettings.from_dict(data))
