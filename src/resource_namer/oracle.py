"""Existence oracle contract and local implementations.

The oracle answers "does a resource with this name already exist". It is
an external, potentially slow dependency, so callers normally go through
``CachedExistenceOracle``, which adds the per-call timeout and the shared
result cache.
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

from .exceptions import OracleError, OracleTimeoutError, OracleUnavailableError
from .models import ExistenceResult, ResourceType
from .validation_cache import CacheKey, ValidationCache

logger = logging.getLogger(__name__)


@runtime_checkable
class ExistenceOracle(Protocol):
    """
    Protocol for existence-check backends.

    Implementations raise ``OracleUnavailableError`` (or its subclass
    ``OracleTimeoutError``) when they cannot answer. They never report a
    failed check as ``exists=False``.

    Example:
        class MyOracle:
            async def exists(self, name: str, resource_type: ResourceType) -> ExistenceResult:
                ...

        assert isinstance(MyOracle(), ExistenceOracle)  # True at runtime
    """

    async def exists(self, name: str, resource_type: ResourceType) -> ExistenceResult:
        """Check whether ``name`` is already used by a resource of ``resource_type``."""
        ...


def cache_key(resource_type: ResourceType, name: str) -> CacheKey:
    """Cache key for one existence check."""
    return (resource_type.short_name.lower(), name.lower())


class CachedExistenceOracle:
    """
    Wraps an oracle with a per-call timeout and a shared result cache.

    Only successful answers are cached. Failures and timeouts propagate as
    ``OracleUnavailableError`` and leave the cache untouched.

    Args:
        oracle: Backend to consult on cache misses
        cache: Shared cache (None disables caching)
        timeout_seconds: Per-call timeout (None for no timeout)
    """

    def __init__(
        self,
        oracle: ExistenceOracle,
        cache: ValidationCache | None = None,
        timeout_seconds: float | None = 5.0,
    ) -> None:
        self._oracle = oracle
        self._cache = cache
        self._timeout_seconds = timeout_seconds

    @property
    def cache(self) -> ValidationCache | None:
        return self._cache

    async def _check(self, name: str, resource_type: ResourceType) -> ExistenceResult:
        try:
            if self._timeout_seconds is None:
                return await self._oracle.exists(name, resource_type)
            return await asyncio.wait_for(
                self._oracle.exists(name, resource_type), timeout=self._timeout_seconds
            )
        except TimeoutError as e:
            raise OracleTimeoutError(
                self._timeout_seconds or 0,
                e,
                resource_type=resource_type.short_name,
                name=name,
            ) from e
        except OracleError:
            raise
        except Exception as e:
            raise OracleUnavailableError(
                f"Existence check failed: {e}",
                e,
                resource_type=resource_type.short_name,
                name=name,
            ) from e

    async def exists(self, name: str, resource_type: ResourceType) -> ExistenceResult:
        if self._cache is None:
            return await self._check(name, resource_type)

        result: ExistenceResult = await self._cache.get_or_fetch_async(
            cache_key(resource_type, name),
            lambda: self._check(name, resource_type),
            should_cache=lambda r: r.performed,
        )
        return result

    def invalidate(self, resource_type: ResourceType | None = None) -> int:
        """Drop cached results for one resource type, or all of them."""
        if self._cache is None:
            return 0
        if resource_type is None:
            return self._cache.invalidate()
        return self._cache.invalidate((resource_type.short_name.lower(),))


class InMemoryExistenceOracle:
    """
    Oracle backed by an in-memory set of existing names.

    Names compare case-insensitively. ``identifiers`` optionally maps a
    name to the provider identifiers reported as conflicts. Every call is
    recorded in ``calls``.
    """

    def __init__(
        self,
        existing: Iterable[str] = (),
        identifiers: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self._existing = {n.lower() for n in existing}
        self._identifiers = {k.lower(): tuple(v) for k, v in (identifiers or {}).items()}
        self.calls: list[tuple[str, str]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def add(self, name: str, *identifiers: str) -> None:
        self._existing.add(name.lower())
        if identifiers:
            self._identifiers[name.lower()] = identifiers

    async def exists(self, name: str, resource_type: ResourceType) -> ExistenceResult:
        self.calls.append((name, resource_type.short_name))
        key = name.lower()
        found = key in self._existing
        logger.debug("In-memory existence check %s/%s: %s", resource_type.short_name, name, found)
        return ExistenceResult(
            exists=found,
            conflicting_identifiers=self._identifiers.get(key, ()) if found else (),
        )
