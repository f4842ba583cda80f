"""Command-line interface for resource-namer."""

import asyncio
import json
import logging
import sys
from collections.abc import Iterable
from dataclasses import replace

import click

from .config import NamingSettings, load_settings
from .exceptions import ResourceNamerError
from .models import ConflictStrategy, NameRequest
from .oracle import CachedExistenceOracle, InMemoryExistenceOracle
from .repository import InMemoryConfigurationSource, InMemoryNameHistory
from .resolver import ConflictResolver
from .service import NamingService
from .validator import validate

LOG_LEVEL_ENV_VAR = "RESOURCE_NAMER_LOG_LEVEL"

_STRATEGY_CHOICES = [s.value for s in ConflictStrategy]


def _parse_pairs(pairs: Iterable[str], option: str) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint=option)
        parsed[key.strip()] = value.strip()
    return parsed


def _settings(
    config: str,
    strategy: str | None,
    max_attempts: int | None,
    existing: tuple[str, ...],
) -> NamingSettings:
    settings = load_settings(config)
    if strategy or max_attempts:
        settings = settings.with_strategy(strategy or settings.strategy, max_attempts)
    if existing:
        settings = replace(settings, validation_enabled=True)
    return settings


config_option = click.option(
    "--config",
    "config",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML configuration bundle",
)
type_option = click.option(
    "--type",
    "resource_type",
    required=True,
    help="Resource type short name or id",
)
existing_option = click.option(
    "--existing",
    multiple=True,
    help="Name treated as already taken (repeatable; enables existence checks)",
)
strategy_option = click.option(
    "--strategy",
    type=click.Choice(_STRATEGY_CHOICES, case_sensitive=False),
    help="Conflict resolution strategy (overrides the configuration)",
)
max_attempts_option = click.option(
    "--max-attempts",
    type=click.IntRange(1),
    help="Maximum conflict resolution attempts",
)


@click.group()
@click.version_option(package_name="resource-namer")
@click.option(
    "--log-level",
    envvar=LOG_LEVEL_ENV_VAR,
    default="WARNING",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level",
)
def cli(log_level: str) -> None:
    """Standardized resource name generation."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@config_option
@type_option
@click.option(
    "--value",
    "values",
    multiple=True,
    metavar="COMPONENT=SHORT_NAME",
    help="Built-in component value, e.g. ResourceEnvironment=dev (repeatable)",
)
@click.option(
    "--custom",
    "custom",
    multiple=True,
    metavar="COMPONENT=VALUE",
    help="Custom component value (repeatable)",
)
@click.option("--instance", help="Resource instance number, e.g. 001")
@click.option("--created-by", default="System", show_default=True, help="Requesting user")
@existing_option
@strategy_option
@max_attempts_option
@click.option("--json", "as_json", is_flag=True, help="Print the full response as JSON")
def generate(
    config: str,
    resource_type: str,
    values: tuple[str, ...],
    custom: tuple[str, ...],
    instance: str | None,
    created_by: str,
    existing: tuple[str, ...],
    strategy: str | None,
    max_attempts: int | None,
    as_json: bool,
) -> None:
    """Generate a resource name."""
    try:
        source = InMemoryConfigurationSource.from_yaml(config)
        settings = _settings(config, strategy, max_attempts, existing)
    except (ResourceNamerError, ValueError, OSError) as e:
        click.echo(f"✗ Failed to load configuration: {e}", err=True)
        sys.exit(1)

    data: dict[str, object] = dict(_parse_pairs(values, "--value"))
    if instance is not None:
        data["ResourceInstance"] = instance
    data["custom_components"] = _parse_pairs(custom, "--custom")
    data["created_by"] = created_by
    request = NameRequest.from_dict(data)

    oracle = InMemoryExistenceOracle(existing) if existing else None
    service = NamingService(source, oracle, InMemoryNameHistory())
    response = asyncio.run(service.request_name(request, resource_type, settings))

    if as_json:
        click.echo(json.dumps(response.to_dict(), indent=2))
    else:
        click.echo(response.resource_name)
        if response.message:
            click.echo(response.message, err=True)
    if not response.success:
        sys.exit(1)


@cli.command("validate")
@config_option
@type_option
@click.option("--delimiter", help="Delimiter to assume (default: the active delimiter)")
@click.argument("name")
def validate_command(config: str, resource_type: str, delimiter: str | None, name: str) -> None:
    """Validate NAME against a resource type's naming rules."""

    async def _validate() -> None:
        try:
            source = InMemoryConfigurationSource.from_yaml(config)
            rtype = await source.get_resource_type(resource_type)
            active = delimiter if delimiter is not None else await source.get_active_delimiter()
        except (ResourceNamerError, ValueError, OSError) as e:
            click.echo(f"✗ {e}", err=True)
            sys.exit(1)

        outcome = validate(rtype, name, active)
        click.echo(outcome.name)
        if outcome.message:
            click.echo(outcome.message, err=True)
        if not outcome.valid:
            sys.exit(1)

    asyncio.run(_validate())


@cli.command()
@config_option
@type_option
@existing_option
@strategy_option
@max_attempts_option
@click.argument("name")
def resolve(
    config: str,
    resource_type: str,
    existing: tuple[str, ...],
    strategy: str | None,
    max_attempts: int | None,
    name: str,
) -> None:
    """Resolve a conflict for NAME against the --existing names."""

    async def _resolve() -> None:
        try:
            source = InMemoryConfigurationSource.from_yaml(config)
            rtype = await source.get_resource_type(resource_type)
            settings = _settings(config, strategy, max_attempts, existing)
        except (ResourceNamerError, ValueError, OSError) as e:
            click.echo(f"✗ {e}", err=True)
            sys.exit(1)

        oracle = CachedExistenceOracle(
            InMemoryExistenceOracle(existing), timeout_seconds=settings.oracle_timeout_seconds
        )
        outcome = await ConflictResolver(oracle).resolve(name, rtype, settings)

        click.echo(outcome.final_name)
        if outcome.warning:
            click.echo(outcome.warning, err=True)
        if not outcome.success:
            click.echo(f"✗ {outcome.error_message}", err=True)
            sys.exit(1)

    asyncio.run(_resolve())


@cli.command()
@click.option(
    "--config",
    "config",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML configuration bundle (default: built-in components)",
)
@click.option("--all", "include_disabled", is_flag=True, help="Include disabled components")
def components(config: str | None, include_disabled: bool) -> None:
    """List components in composition order."""
    try:
        source = (
            InMemoryConfigurationSource.from_yaml(config) if config else InMemoryConfigurationSource()
        )
    except (ResourceNamerError, ValueError, OSError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    delimiter = source.delimiters.get_active_delimiter()
    click.echo(f"Delimiter: {delimiter!r}")
    for component in source.catalog.components(include_disabled=include_disabled):
        marker = "✓" if component.enabled else " "
        kind = " (custom)" if component.is_custom else ""
        click.echo(f"{marker} {component.sort_order:>2}. {component.name} - {component.label}{kind}")


if __name__ == "__main__":
    cli()
