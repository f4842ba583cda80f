"""Tests for conflict resolution strategies."""

import asyncio
import random
from unittest.mock import AsyncMock

import pytest

from resource_namer.config import ConflictResolutionSettings, NamingSettings
from resource_namer.exceptions import OracleTimeoutError, OracleUnavailableError
from resource_namer.models import ConflictStrategy, ExistenceResult, ResourceType
from resource_namer.oracle import InMemoryExistenceOracle
from resource_namer.resolver import (
    MAX_RANDOM_SUFFIX_ATTEMPTS,
    SUFFIX_ALPHABET,
    ConflictResolver,
    InstancePattern,
    SyncConflictResolver,
    parse_instance,
    random_suffix,
)


def _settings(
    strategy: ConflictStrategy, max_attempts: int = 10, include_warnings: bool = True
) -> ConflictResolutionSettings:
    return ConflictResolutionSettings(
        strategy=strategy, max_attempts=max_attempts, include_warnings=include_warnings
    )


def _sequence(*suffixes: str):
    values = iter(suffixes)
    return lambda: next(values)


class TestInstancePattern:
    """Tests for trailing instance number parsing."""

    def test_hyphenated_instance(self) -> None:
        """-NNN is preferred and keeps its width."""
        assert parse_instance("rg-app-001") == InstancePattern("rg-app", 1, 3, "-")

    def test_bare_digits(self) -> None:
        """Bare trailing digits are accepted without a delimiter."""
        pattern = parse_instance("stapp07")
        assert pattern == InstancePattern("stapp", 7, 2, "")
        assert pattern.candidate(8) == "stapp08"

    def test_no_digits(self) -> None:
        """Names without trailing digits have no pattern."""
        assert parse_instance("rg-app") is None
        assert parse_instance("rg-001-app") is None
        assert parse_instance("rg-001\n") is None

    def test_width_overflow(self) -> None:
        """Numbers wider than the original width are kept whole."""
        assert parse_instance("vm-999").candidate(1000) == "vm-1000"


class TestRandomSuffix:
    """Tests for the default suffix generator."""

    def test_shape(self) -> None:
        """Suffixes are six lowercase alphanumeric characters."""
        suffix = random_suffix()
        assert len(suffix) == 6
        assert set(suffix) <= set(SUFFIX_ALPHABET)

    def test_seeded(self) -> None:
        """A seeded generator is reproducible."""
        assert random_suffix(rng=random.Random(7)) == random_suffix(rng=random.Random(7))


class TestAutoIncrement:
    """Tests for the AutoIncrement strategy."""

    @pytest.mark.asyncio
    async def test_first_free_candidate(self, rg_type: ResourceType) -> None:
        """Candidates are tried in order until one is free."""
        oracle = InMemoryExistenceOracle(["rg-app-001", "rg-app-002", "rg-app-003"])
        resolver = ConflictResolver(oracle)

        outcome = await resolver.resolve(
            "rg-app-001", rg_type, _settings(ConflictStrategy.AUTO_INCREMENT)
        )

        assert outcome.success
        assert outcome.final_name == "rg-app-004"
        assert outcome.attempts == 3
        assert outcome.warning == (
            "Original name 'rg-app-001' already exists. Auto-incremented to 'rg-app-004'."
        )
        assert [c[0] for c in oracle.calls] == ["rg-app-002", "rg-app-003", "rg-app-004"]

    @pytest.mark.asyncio
    async def test_accepts_naming_settings(self, rg_type: ResourceType) -> None:
        """A full NamingSettings snapshot is accepted as well."""
        settings = NamingSettings().with_strategy(ConflictStrategy.AUTO_INCREMENT, 5)
        outcome = await ConflictResolver(InMemoryExistenceOracle()).resolve(
            "rg-app-9", rg_type, settings
        )
        assert outcome.final_name == "rg-app-10"

    @pytest.mark.asyncio
    async def test_width_grows_past_nines(self, rg_type: ResourceType) -> None:
        """vm-999 increments to vm-1000 when that name is free."""
        oracle = InMemoryExistenceOracle()
        outcome = await ConflictResolver(oracle).resolve(
            "vm-999", rg_type, _settings(ConflictStrategy.AUTO_INCREMENT)
        )
        assert outcome.success
        assert outcome.final_name == "vm-1000"
        assert outcome.attempts == 1
        assert [c[0] for c in oracle.calls] == ["vm-1000"]

    @pytest.mark.asyncio
    async def test_warning_suppressed(self, rg_type: ResourceType) -> None:
        """include_warnings=False drops the success warning."""
        outcome = await ConflictResolver(InMemoryExistenceOracle()).resolve(
            "rg-app-001",
            rg_type,
            _settings(ConflictStrategy.AUTO_INCREMENT, include_warnings=False),
        )
        assert outcome.success
        assert outcome.warning is None

    @pytest.mark.asyncio
    async def test_no_instance_pattern(self, rg_type: ResourceType) -> None:
        """Names without an instance number fail without consulting the oracle."""
        oracle = InMemoryExistenceOracle()
        outcome = await ConflictResolver(oracle).resolve(
            "rg-app", rg_type, _settings(ConflictStrategy.AUTO_INCREMENT)
        )
        assert not outcome.success
        assert outcome.final_name == "rg-app"
        assert outcome.error_message == (
            "Cannot auto-increment: No instance number pattern found in name"
        )
        assert outcome.warning is not None
        assert oracle.call_count == 0

    @pytest.mark.asyncio
    async def test_exhausted(self, rg_type: ResourceType) -> None:
        """Every candidate taken reports the last candidate tried."""
        oracle = InMemoryExistenceOracle(["rg-app-002", "rg-app-003", "rg-app-004"])
        outcome = await ConflictResolver(oracle).resolve(
            "rg-app-001", rg_type, _settings(ConflictStrategy.AUTO_INCREMENT, max_attempts=3)
        )
        assert not outcome.success
        assert not outcome.oracle_failure
        assert outcome.attempts == 3
        assert outcome.final_name == "rg-app-004"
        assert outcome.error_message == "Could not find unique name after 3 attempts"
        assert outcome.warning == (
            "Exceeded maximum auto-increment attempts (3). Last tried: rg-app-004"
        )

    @pytest.mark.asyncio
    async def test_oracle_failure_stops(self, rg_type: ResourceType) -> None:
        """An oracle failure stops the loop and is never read as available."""
        oracle = AsyncMock()
        oracle.exists.side_effect = [
            ExistenceResult(exists=True),
            OracleUnavailableError("service unavailable"),
        ]
        outcome = await ConflictResolver(oracle).resolve(
            "rg-app-001", rg_type, _settings(ConflictStrategy.AUTO_INCREMENT)
        )
        assert not outcome.success
        assert outcome.oracle_failure
        assert outcome.attempts == 2
        assert outcome.final_name == "rg-app-001"
        assert "could not verify 'rg-app-003' after 2 attempt(s)" in outcome.error_message
        assert oracle.exists.await_count == 2


class TestSuffixRandom:
    """Tests for the SuffixRandom strategy."""

    @pytest.mark.asyncio
    async def test_first_free_suffix(self, storage_type: ResourceType) -> None:
        """The first suffix whose candidate is free is used."""
        oracle = InMemoryExistenceOracle(["stapp-aaaaaa"])
        resolver = ConflictResolver(oracle, suffix_generator=_sequence("aaaaaa", "bbbbbb"))
        outcome = await resolver.resolve(
            "stapp", storage_type, _settings(ConflictStrategy.SUFFIX_RANDOM)
        )
        assert outcome.success
        assert outcome.final_name == "stapp-bbbbbb"
        assert outcome.attempts == 2
        assert outcome.warning == (
            "Original name 'stapp' already exists. Added random suffix: 'stapp-bbbbbb'."
        )

    @pytest.mark.asyncio
    async def test_default_generator(self, storage_type: ResourceType) -> None:
        """Without an injected generator a six-character suffix is appended."""
        outcome = await ConflictResolver(InMemoryExistenceOracle()).resolve(
            "stapp", storage_type, _settings(ConflictStrategy.SUFFIX_RANDOM)
        )
        prefix, suffix = outcome.final_name.rsplit("-", 1)
        assert prefix == "stapp"
        assert len(suffix) == 6

    @pytest.mark.asyncio
    async def test_attempts_bounded(self, storage_type: ResourceType) -> None:
        """Attempts never exceed the random-suffix ceiling; the original is kept."""
        oracle = AsyncMock()
        oracle.exists.return_value = ExistenceResult(exists=True)
        resolver = ConflictResolver(oracle, suffix_generator=lambda: "zzzzzz")
        outcome = await resolver.resolve(
            "stapp", storage_type, _settings(ConflictStrategy.SUFFIX_RANDOM, max_attempts=100)
        )
        assert not outcome.success
        assert outcome.final_name == "stapp"
        assert outcome.attempts == MAX_RANDOM_SUFFIX_ATTEMPTS
        assert oracle.exists.await_count == MAX_RANDOM_SUFFIX_ATTEMPTS
        assert outcome.error_message == (
            "Could not generate unique name with random suffix after 50 attempts"
        )

    @pytest.mark.asyncio
    async def test_smaller_max_attempts(self, storage_type: ResourceType) -> None:
        """A configured maximum below the ceiling is honoured."""
        oracle = AsyncMock()
        oracle.exists.return_value = ExistenceResult(exists=True)
        resolver = ConflictResolver(oracle, suffix_generator=lambda: "zzzzzz")
        outcome = await resolver.resolve(
            "stapp", storage_type, _settings(ConflictStrategy.SUFFIX_RANDOM, max_attempts=4)
        )
        assert outcome.attempts == 4
        assert oracle.exists.await_count == 4

    @pytest.mark.asyncio
    async def test_timeout_stops(self, storage_type: ResourceType) -> None:
        """A timed-out check stops the loop with oracle_failure set."""
        oracle = AsyncMock()
        oracle.exists.side_effect = OracleTimeoutError(5.0, name="stapp-aaaaaa")
        resolver = ConflictResolver(oracle, suffix_generator=lambda: "aaaaaa")
        outcome = await resolver.resolve(
            "stapp", storage_type, _settings(ConflictStrategy.SUFFIX_RANDOM)
        )
        assert not outcome.success
        assert outcome.oracle_failure
        assert outcome.attempts == 1
        assert outcome.final_name == "stapp"
        assert "timed out after 5s" in outcome.error_message


class TestNotifyOnly:
    """Tests for the NotifyOnly strategy."""

    @pytest.mark.asyncio
    async def test_with_identifiers(self, rg_type: ResourceType) -> None:
        """The warning counts the conflicting resources."""
        oracle = InMemoryExistenceOracle()
        oracle.add("rg-app-001", "/subscriptions/s/resourceGroups/rg-app-001")
        outcome = await ConflictResolver(oracle).resolve(
            "rg-app-001", rg_type, _settings(ConflictStrategy.NOTIFY_ONLY)
        )
        assert outcome.success
        assert outcome.final_name == "rg-app-001"
        assert outcome.attempts == 1
        assert outcome.warning == (
            "Warning: Name 'rg-app-001' already exists (1 conflicting resource(s) found)."
        )

    @pytest.mark.asyncio
    async def test_without_identifiers(self, rg_type: ResourceType) -> None:
        """Without identifiers the warning omits the count."""
        oracle = InMemoryExistenceOracle(["rg-app-001"])
        outcome = await ConflictResolver(oracle).resolve(
            "rg-app-001", rg_type, _settings(ConflictStrategy.NOTIFY_ONLY)
        )
        assert outcome.warning == "Warning: Name 'rg-app-001' already exists."

    @pytest.mark.asyncio
    async def test_oracle_failure(self, rg_type: ResourceType) -> None:
        """The name is kept and the failure is flagged."""
        oracle = AsyncMock()
        oracle.exists.side_effect = OracleUnavailableError("throttled")
        outcome = await ConflictResolver(oracle).resolve(
            "rg-app-001", rg_type, _settings(ConflictStrategy.NOTIFY_ONLY)
        )
        assert outcome.success
        assert outcome.oracle_failure
        assert outcome.final_name == "rg-app-001"
        assert "Could not verify whether 'rg-app-001' already exists" in outcome.warning


class TestFail:
    """Tests for the Fail strategy."""

    @pytest.mark.asyncio
    async def test_never_consults_oracle(self, rg_type: ResourceType) -> None:
        """Fail rejects immediately with zero oracle calls."""
        oracle = AsyncMock()
        outcome = await ConflictResolver(oracle).resolve(
            "rg-app-001", rg_type, _settings(ConflictStrategy.FAIL)
        )
        assert not outcome.success
        assert outcome.attempts == 0
        assert outcome.final_name == "rg-app-001"
        assert outcome.error_message == (
            "Name conflict: 'rg-app-001' already exists and conflict strategy is set to Fail."
        )
        assert outcome.warning is not None
        oracle.exists.assert_not_called()


class TestResolverErrors:
    """Tests for unexpected errors and cancellation."""

    @pytest.mark.asyncio
    async def test_unexpected_error_reported(self, rg_type: ResourceType) -> None:
        """Non-oracle errors become a failed outcome rather than propagating."""
        oracle = AsyncMock()
        oracle.exists.side_effect = RuntimeError("boom")
        outcome = await ConflictResolver(oracle).resolve(
            "rg-app-001", rg_type, _settings(ConflictStrategy.AUTO_INCREMENT)
        )
        assert not outcome.success
        assert outcome.error_message == "Conflict resolution failed: boom"
        assert outcome.final_name == "rg-app-001"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, rg_type: ResourceType) -> None:
        """Cancelling resolution stops further oracle calls."""
        started = asyncio.Event()
        calls = 0

        class BlockingOracle:
            async def exists(self, name, resource_type):
                nonlocal calls
                calls += 1
                started.set()
                await asyncio.sleep(10)

        resolver = ConflictResolver(BlockingOracle())
        task = asyncio.create_task(
            resolver.resolve("rg-app-001", rg_type, _settings(ConflictStrategy.AUTO_INCREMENT))
        )
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert calls == 1


class TestSyncConflictResolver:
    """Tests for the synchronous wrapper."""

    def test_resolve(self, rg_type: ResourceType) -> None:
        """The sync wrapper returns the same outcome as the async resolver."""
        oracle = InMemoryExistenceOracle(["rg-app-002"])
        with SyncConflictResolver(oracle) as resolver:
            outcome = resolver.resolve(
                "rg-app-001", rg_type, _settings(ConflictStrategy.AUTO_INCREMENT)
            )
        assert outcome.final_name == "rg-app-003"
        assert outcome.attempts == 2

    def test_close_is_idempotent(self) -> None:
        """Closing twice is harmless."""
        resolver = SyncConflictResolver(InMemoryExistenceOracle())
        resolver.close()
        resolver.close()
