"""Naming request pipeline.

``NamingService.request_name`` runs one request through composition,
validation, the optional existence check and conflict resolution, then
records the accepted name in the naming history. It never raises for
request or oracle problems; every failure comes back as a ``NameResponse``
carrying the ``NOT_GENERATED`` placeholder.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .composer import STATIC_VALUE_MESSAGE, compose
from .config import NamingSettings
from .exceptions import OracleError, ResourceNamerError
from .models import ExistenceResult, GeneratedName, NameRequest, NameResponse, ResourceType
from .naming import NOT_GENERATED
from .oracle import CachedExistenceOracle, ExistenceOracle
from .repository_protocol import ConfigurationSource, NameHistoryStore
from .resolver import ConflictResolver
from .validation_cache import ValidationCache
from .validator import validate

logger = logging.getLogger(__name__)

RESOLUTION_FAILED_MESSAGE = "Failed to resolve naming conflict."


def _failure(message: str, **kwargs: Any) -> NameResponse:
    return NameResponse(success=False, resource_name=NOT_GENERATED, message=message, **kwargs)


class NamingService:
    """
    Generates names from configuration and caller-supplied values.

    The existence cache is shared by every request the service handles.
    Passing settings that differ from the previous call invalidates it,
    since cached answers may have been produced under other rules.

    Args:
        source: Configuration collaborator
        oracle: Existence oracle (None never consults one)
        history: Naming history collaborator (None skips recording)
        cache: Shared existence cache, kept for the service's lifetime (created
            from the settings when None, and recreated when their TTL changes)
        suffix_generator: Random suffix source for SuffixRandom resolution

    Example:
        service = NamingService(source, oracle=AzureExistenceOracle(get_token))
        response = await service.request_name(request, "st", settings)
    """

    def __init__(
        self,
        source: ConfigurationSource,
        oracle: ExistenceOracle | None = None,
        history: NameHistoryStore | None = None,
        *,
        cache: ValidationCache | None = None,
        suffix_generator: Callable[[], str] | None = None,
    ) -> None:
        self._source = source
        self._oracle = oracle
        self._history = history
        self._cache = cache
        self._owns_cache = cache is None
        self._suffix_generator = suffix_generator
        self._settings: NamingSettings | None = None

    @property
    def cache(self) -> ValidationCache | None:
        return self._cache

    def _cache_for(self, settings: NamingSettings) -> ValidationCache:
        if self._settings is not None and settings != self._settings and self._cache is not None:
            removed = self._cache.invalidate()
            logger.info("Settings changed, dropped %d cached existence results", removed)
        if self._cache is None or (
            self._owns_cache and self._cache.ttl_seconds != settings.cache.ttl_seconds
        ):
            self._cache = ValidationCache(ttl_seconds=settings.cache.ttl_seconds)
        self._settings = settings
        return self._cache

    def invalidate_cache(self) -> int:
        """Drop every cached existence result."""
        if self._cache is None:
            return 0
        return self._cache.invalidate()

    async def request_name(
        self,
        request: NameRequest,
        resource_type: str | int | ResourceType,
        settings: NamingSettings | None = None,
    ) -> NameResponse:
        """
        Generate a name for ``resource_type`` from ``request``.

        Args:
            request: Component values supplied by the caller
            resource_type: Resource type, or its short name or id
            settings: Settings snapshot for this call (defaults when None)

        Returns:
            NameResponse; failures carry the NOT_GENERATED placeholder
        """
        settings = settings or NamingSettings()
        cache = self._cache_for(settings)
        try:
            return await self._request_name(request, resource_type, settings, cache)
        except ResourceNamerError as e:
            logger.warning("Name generation failed: %s", e)
            return _failure(str(e))
        except Exception as e:
            logger.exception("Unexpected error generating name")
            return _failure(str(e))

    async def _request_name(
        self,
        request: NameRequest,
        key: str | int | ResourceType,
        settings: NamingSettings,
        cache: ValidationCache,
    ) -> NameResponse:
        if isinstance(key, ResourceType):
            resource_type = key
        else:
            resource_type = await self._source.get_resource_type(key)

        if resource_type.static_value:
            return NameResponse(
                success=True,
                resource_name=resource_type.static_value,
                message=STATIC_VALUE_MESSAGE,
            )

        delimiter = await self._source.get_active_delimiter()
        composition = compose(
            request,
            resource_type,
            await self._source.get_components(),
            delimiter,
            custom_options=await self._source.get_custom_component_options(),
            builtin_options=await self._source.get_component_options(),
        )
        if not composition.success:
            return _failure(composition.message)

        messages = list(composition.warnings)
        name = composition.name
        outcome = validate(resource_type, name, delimiter)
        if outcome.name:
            name = outcome.name
        if outcome.message:
            messages.append(outcome.message)
        if not outcome.valid:
            return _failure(" ".join(messages))

        if (
            not settings.validation_enabled
            and not settings.duplicate_names_allowed
            and self._history is not None
            and await self._history.exists(name)
        ):
            return _failure(
                f"The name ({name}) you are trying to generate already exists. "
                "Please select different component options and try again."
            )

        generated = GeneratedName(
            resource_name=name,
            resource_type_name=resource_type.type_name,
            components=list(composition.contributions),
            created_by=request.created_by,
        )

        existence: ExistenceResult | None = None
        resolution = None
        if settings.validation_enabled and self._oracle is not None:
            oracle = CachedExistenceOracle(
                self._oracle,
                cache,
                timeout_seconds=settings.oracle_timeout_seconds,
            )
            try:
                existence = await oracle.exists(name, resource_type)
            except OracleError as e:
                # The name is still issued; the response records that it was not checked
                logger.warning("Existence check could not be performed for %s: %s", name, e)
                existence = ExistenceResult.not_performed(
                    f"Existence check could not be performed: {e}"
                )
                messages.append(existence.warning or "")

            if existence.exists:
                resolver = ConflictResolver(oracle, suffix_generator=self._suffix_generator)
                resolution = await resolver.resolve(name, resource_type, settings)
                if not resolution.success:
                    return _failure(
                        resolution.error_message or RESOLUTION_FAILED_MESSAGE,
                        resolution=resolution,
                        existence=existence,
                    )
                name = resolution.final_name
                generated.resource_name = name
                resolution_message = (
                    f"Name conflict resolved using {resolution.strategy.value} strategy. "
                    f"Original: {resolution.original_name}, Final: {resolution.final_name}"
                )
                if resolution.warning:
                    resolution_message += f" Warning: {resolution.warning}"
                messages.append(resolution_message)

        generated.message = " ".join(messages)
        if self._history is not None:
            await self._history.save(generated)

        logger.info("Generated name %s for resource type %s", name, resource_type.short_name)
        return NameResponse(
            success=True,
            resource_name=name,
            message=generated.message,
            details=generated,
            resolution=resolution,
            existence=existence,
        )


class SyncNamingService:
    """
    Synchronous naming service.

    Wraps NamingService, running it on a private event loop.
    """

    def __init__(
        self,
        source: ConfigurationSource,
        oracle: ExistenceOracle | None = None,
        history: NameHistoryStore | None = None,
        *,
        cache: ValidationCache | None = None,
        suffix_generator: Callable[[], str] | None = None,
    ) -> None:
        self._service = NamingService(
            source, oracle, history, cache=cache, suffix_generator=suffix_generator
        )
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def cache(self) -> ValidationCache | None:
        return self._service.cache

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        """Get or create the private event loop."""
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop

    def _run(self, coro: Any) -> Any:
        """Run a coroutine in the event loop."""
        return self._get_loop().run_until_complete(coro)

    def request_name(
        self,
        request: NameRequest,
        resource_type: str | int | ResourceType,
        settings: NamingSettings | None = None,
    ) -> NameResponse:
        """Generate a name for ``resource_type`` from ``request``."""
        response: NameResponse = self._run(
            self._service.request_name(request, resource_type, settings)
        )
        return response

    def invalidate_cache(self) -> int:
        return self._service.invalidate_cache()

    def close(self) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.close()

    def __enter__(self) -> "SyncNamingService":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
