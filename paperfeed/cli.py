"""CLI commands for ranking papers and generating daily digests."""

import json
import logging
import sys
from pathlib import Path

import click
import structlog

from paperfeed.config import ConfigLoader, ConfigValidationError, RankingConfig
from paperfeed.observability import configure_logging
from paperfeed.ranker import PaperRanker, RankerMetrics
from paperfeed.recommender import generate_daily_digests
from paperfeed.settings import get_settings
from paperfeed.store import SqliteStore


logger = structlog.get_logger()


def _setup_logging(json_logs: bool, verbose: bool) -> None:
    level = logging.DEBUG if verbose else get_settings().log_level
    configure_logging(level=level, json_format=json_logs)


def _load_config_or_exit(
    config_path: Path | None, loader: ConfigLoader | None = None
) -> RankingConfig:
    loader = loader or ConfigLoader()
    try:
        return loader.load(config_path)
    except ConfigValidationError as e:
        click.echo(f"Configuration validation failed: {e.file_path}", err=True)
        for error in e.errors:
            click.echo(f"  - {error['loc']}: {error['msg']}", err=True)
        sys.exit(1)


_state_option = click.option(
    "--state",
    "state_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to SQLite database (default: PAPERFEED_DB_PATH).",
)
_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to ranking.yaml (default: PAPERFEED_CONFIG_PATH or built-in weights).",
)
_json_logs_option = click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON format for logs (default: true).",
)
_verbose_option = click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose logging."
)


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """Personalized paper ranking and digest CLI."""


@cli.command()
@_state_option
@_config_option
@_json_logs_option
@_verbose_option
def rank(
    state_path: Path | None,
    config_path: Path | None,
    json_logs: bool,
    verbose: bool,
) -> None:
    """Score every enriched paper that has no Score yet."""
    _setup_logging(json_logs, verbose)
    settings = get_settings()
    config = _load_config_or_exit(config_path or settings.config_path)

    with SqliteStore(state_path or settings.db_path) as store:
        result = PaperRanker(store, config).score_unranked_papers()

    click.echo(
        f"Ranked {len(result.ranked_ids)} papers "
        f"({len(result.failed_ids)} failed, {len(result.excluded_ids)} excluded)"
    )
    logger.info("rank_command_complete", metrics=RankerMetrics.get_instance().to_dict())
    if result.failed_ids:
        sys.exit(1)


@cli.command()
@_state_option
@_config_option
@_json_logs_option
@_verbose_option
def digest(
    state_path: Path | None,
    config_path: Path | None,
    json_logs: bool,
    verbose: bool,
) -> None:
    """Generate today's briefing for every digest-enabled user."""
    _setup_logging(json_logs, verbose)
    settings = get_settings()
    config = _load_config_or_exit(config_path or settings.config_path)

    with SqliteStore(state_path or settings.db_path) as store:
        result = generate_daily_digests(store, config)

    click.echo(
        f"Generated {result.succeeded}/{result.total} digests ({result.failed} failed)"
    )
    if result.failed:
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to ranking.yaml.",
)
def validate(config_path: Path) -> None:
    """Validate a ranking configuration file."""
    configure_logging(json_format=False)
    loader = ConfigLoader()
    config = _load_config_or_exit(config_path, loader)

    checksum = loader.file_checksums.get(str(config_path.resolve()), "")
    click.echo("Configuration is valid!")
    click.echo(f"  Version: {config.version}")
    click.echo(f"  Fusion clamp: {config.fusion.clamp}")
    click.echo(f"  Learning rate: {config.feedback.learning_rate}")
    if checksum:
        click.echo(f"  Checksum: {checksum}")


@cli.command("db-stats")
@_state_option
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
def db_stats(state_path: Path | None, json_output: bool) -> None:
    """Display database statistics."""
    configure_logging(json_format=False)
    path = state_path or get_settings().db_path

    with SqliteStore(path) as store:
        stats = store.get_stats()
        schema_version = store.get_schema_version()

    if json_output:
        click.echo(
            json.dumps({"schema_version": schema_version, "tables": stats}, indent=2)
        )
        return

    click.echo("Database Statistics")
    click.echo("=" * 40)
    click.echo(f"  Schema Version: {schema_version}")
    click.echo("")
    click.echo("Table Row Counts:")
    for table, count in sorted(stats.items()):
        click.echo(f"  {table}: {count}")


if __name__ == "__main__":
    cli()
