"""Conflict resolution for names that already exist.

Each strategy is a self-contained procedure selected by the settings
snapshot. Oracle calls are strictly sequential: the next candidate is only
tried once the previous one is known to be taken. A failed or timed-out
existence check is never read as "available".
"""

import asyncio
import logging
import random
import re
import string
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .config import ConflictResolutionSettings, NamingSettings
from .exceptions import OracleError
from .models import ConflictResolutionOutcome, ConflictStrategy, ResourceType
from .oracle import ExistenceOracle

logger = logging.getLogger(__name__)

SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SUFFIX_LENGTH = 6
MAX_RANDOM_SUFFIX_ATTEMPTS = 50

_HYPHEN_INSTANCE = re.compile(r"-([0-9]+)\Z")
_BARE_INSTANCE = re.compile(r"([0-9]+)\Z")


def random_suffix(length: int = SUFFIX_LENGTH, rng: random.Random | None = None) -> str:
    """Random lowercase alphanumeric suffix."""
    chooser = rng or random
    return "".join(chooser.choice(SUFFIX_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class InstancePattern:
    """Trailing instance number found in a name."""

    prefix: str
    number: int
    width: int
    delimiter: str

    def candidate(self, number: int) -> str:
        """Name with ``number`` zero-padded to the original width (wider numbers kept whole)."""
        return f"{self.prefix}{self.delimiter}{str(number).zfill(self.width)}"


def parse_instance(name: str) -> InstancePattern | None:
    """Find ``-NNN`` (preferred) or bare trailing digits in ``name``."""
    match = _HYPHEN_INSTANCE.search(name)
    delimiter = "-"
    if match is None:
        match = _BARE_INSTANCE.search(name)
        delimiter = ""
    if match is None:
        return None
    digits = match.group(1)
    return InstancePattern(
        prefix=name[: match.start()],
        number=int(digits),
        width=len(digits),
        delimiter=delimiter,
    )


def _conflict_settings(
    settings: NamingSettings | ConflictResolutionSettings,
) -> ConflictResolutionSettings:
    if isinstance(settings, NamingSettings):
        return settings.conflict_resolution
    return settings


class ConflictResolver:
    """
    Resolves a name collision with the configured strategy.

    Args:
        oracle: Existence oracle, normally a ``CachedExistenceOracle``
        suffix_generator: Produces random suffixes (replaceable in tests)
    """

    def __init__(
        self,
        oracle: ExistenceOracle,
        *,
        suffix_generator: Callable[[], str] | None = None,
    ) -> None:
        self._oracle = oracle
        self._suffix_generator = suffix_generator or random_suffix

    async def resolve(
        self,
        original_name: str,
        resource_type: ResourceType,
        settings: NamingSettings | ConflictResolutionSettings,
    ) -> ConflictResolutionOutcome:
        """
        Produce a final name for ``original_name``.

        Never raises for oracle or strategy failures; those are reported in
        the returned outcome. Cancellation propagates and stops further
        oracle calls.
        """
        conflict = _conflict_settings(settings)
        strategy = conflict.strategy
        try:
            if strategy is ConflictStrategy.FAIL:
                outcome = self._fail(original_name)
            elif strategy is ConflictStrategy.NOTIFY_ONLY:
                outcome = await self._notify_only(original_name, resource_type)
            elif strategy is ConflictStrategy.AUTO_INCREMENT:
                outcome = await self._auto_increment(original_name, resource_type, conflict)
            elif strategy is ConflictStrategy.SUFFIX_RANDOM:
                outcome = await self._suffix_random(original_name, resource_type, conflict)
            else:
                raise ValueError(f"Unsupported conflict strategy: {strategy}")
        except Exception as e:
            logger.exception("Error resolving conflict for %s", original_name)
            return ConflictResolutionOutcome(
                original_name=original_name,
                final_name=original_name,
                strategy=strategy,
                success=False,
                error_message=f"Conflict resolution failed: {e}",
            )

        logger.info(
            "Conflict resolution %s using %s: %s -> %s (attempts: %d)",
            "succeeded" if outcome.success else "failed",
            outcome.strategy.value,
            outcome.original_name,
            outcome.final_name,
            outcome.attempts,
        )
        return outcome

    # -------------------------------------------------------------------------
    # Strategies
    # -------------------------------------------------------------------------

    def _fail(self, original_name: str) -> ConflictResolutionOutcome:
        return ConflictResolutionOutcome(
            original_name=original_name,
            final_name=original_name,
            strategy=ConflictStrategy.FAIL,
            success=False,
            attempts=0,
            error_message=(
                f"Name conflict: '{original_name}' already exists and conflict "
                "strategy is set to Fail."
            ),
            warning="Conflict resolution strategy is set to 'Fail'. Resource name must be unique.",
        )

    async def _notify_only(
        self, original_name: str, resource_type: ResourceType
    ) -> ConflictResolutionOutcome:
        outcome = ConflictResolutionOutcome(
            original_name=original_name,
            final_name=original_name,
            strategy=ConflictStrategy.NOTIFY_ONLY,
            success=True,
            attempts=1,
        )
        try:
            result = await self._oracle.exists(original_name, resource_type)
        except OracleError as e:
            logger.warning("Existence check failed for %s: %s", original_name, e)
            outcome.oracle_failure = True
            outcome.warning = f"Warning: Could not verify whether '{original_name}' already exists: {e}"
            return outcome

        if result.exists:
            count = len(result.conflicting_identifiers)
            if count > 0:
                outcome.warning = (
                    f"Warning: Name '{original_name}' already exists "
                    f"({count} conflicting resource(s) found)."
                )
            else:
                outcome.warning = f"Warning: Name '{original_name}' already exists."
        return outcome

    async def _auto_increment(
        self,
        original_name: str,
        resource_type: ResourceType,
        settings: ConflictResolutionSettings,
    ) -> ConflictResolutionOutcome:
        outcome = ConflictResolutionOutcome(
            original_name=original_name,
            final_name=original_name,
            strategy=ConflictStrategy.AUTO_INCREMENT,
            success=False,
        )

        pattern = parse_instance(original_name)
        if pattern is None:
            outcome.error_message = "Cannot auto-increment: No instance number pattern found in name"
            outcome.warning = (
                "Original name does not contain an instance number (e.g., -001 or 001). "
                "Cannot auto-increment."
            )
            return outcome

        candidate = original_name
        for attempt in range(1, settings.max_attempts + 1):
            candidate = pattern.candidate(pattern.number + attempt)
            try:
                result = await self._oracle.exists(candidate, resource_type)
            except OracleError as e:
                # The next candidate depends on this answer, so stop here
                logger.warning("Existence check failed for %s: %s", candidate, e)
                outcome.attempts = attempt
                outcome.oracle_failure = True
                outcome.error_message = (
                    f"Conflict resolution stopped: could not verify '{candidate}' "
                    f"after {attempt} attempt(s): {e}"
                )
                return outcome

            if not result.exists:
                outcome.final_name = candidate
                outcome.success = True
                outcome.attempts = attempt
                if settings.include_warnings:
                    outcome.warning = (
                        f"Original name '{original_name}' already exists. "
                        f"Auto-incremented to '{candidate}'."
                    )
                return outcome

        outcome.final_name = candidate
        outcome.attempts = settings.max_attempts
        outcome.error_message = f"Could not find unique name after {settings.max_attempts} attempts"
        outcome.warning = (
            f"Exceeded maximum auto-increment attempts ({settings.max_attempts}). "
            f"Last tried: {candidate}"
        )
        return outcome

    async def _suffix_random(
        self,
        original_name: str,
        resource_type: ResourceType,
        settings: ConflictResolutionSettings,
    ) -> ConflictResolutionOutcome:
        outcome = ConflictResolutionOutcome(
            original_name=original_name,
            final_name=original_name,
            strategy=ConflictStrategy.SUFFIX_RANDOM,
            success=False,
        )

        max_attempts = min(settings.max_attempts, MAX_RANDOM_SUFFIX_ATTEMPTS)
        for attempt in range(1, max_attempts + 1):
            candidate = f"{original_name}-{self._suffix_generator()}"
            try:
                result = await self._oracle.exists(candidate, resource_type)
            except OracleError as e:
                logger.warning("Existence check failed for %s: %s", candidate, e)
                outcome.attempts = attempt
                outcome.oracle_failure = True
                outcome.error_message = (
                    f"Conflict resolution stopped: could not verify '{candidate}' "
                    f"after {attempt} attempt(s): {e}"
                )
                return outcome

            if not result.exists:
                outcome.final_name = candidate
                outcome.success = True
                outcome.attempts = attempt
                if settings.include_warnings:
                    outcome.warning = (
                        f"Original name '{original_name}' already exists. "
                        f"Added random suffix: '{candidate}'."
                    )
                return outcome

        outcome.attempts = max_attempts
        outcome.error_message = (
            f"Could not generate unique name with random suffix after {max_attempts} attempts"
        )
        return outcome


class SyncConflictResolver:
    """
    Synchronous conflict resolver.

    Wraps ConflictResolver, running it on a private event loop.
    """

    def __init__(
        self,
        oracle: ExistenceOracle,
        *,
        suffix_generator: Callable[[], str] | None = None,
    ) -> None:
        self._resolver = ConflictResolver(oracle, suffix_generator=suffix_generator)
        self._loop: asyncio.AbstractEventLoop | None = None

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        """Get or create the private event loop."""
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop

    def _run(self, coro: Any) -> Any:
        """Run a coroutine in the event loop."""
        return self._get_loop().run_until_complete(coro)

    def resolve(
        self,
        original_name: str,
        resource_type: ResourceType,
        settings: NamingSettings | ConflictResolutionSettings,
    ) -> ConflictResolutionOutcome:
        """Produce a final name for ``original_name``."""
        outcome: ConflictResolutionOutcome = self._run(
            self._resolver.resolve(original_name, resource_type, settings)
        )
        return outcome

    def close(self) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.close()

    def __enter__(self) -> "SyncConflictResolver":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
