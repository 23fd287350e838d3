"""
Cosmoslite Command-Line Interface

Inspect an account and run ad-hoc queries from the shell.

Author: Cosmoslite Team
Date: 2026-02-07
"""

import sys
import json
import logging
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError as ConfigValidationError

from cosmoslite import __version__
from cosmoslite.client.cosmos import CosmosClient
from cosmoslite.core.config_manager import ConfigManager, CosmosConfig
from cosmoslite.core.logging_config import setup_logging
from cosmoslite.exceptions import CosmosError
from cosmoslite.models import ResultEnvelope


logger = logging.getLogger("cosmoslite.cli")


def _load_config(ctx: click.Context) -> CosmosConfig:
    """Resolve configuration from file, environment and global options."""
    opts = ctx.obj
    overrides = {}
    if opts.get("endpoint"):
        overrides["endpoint"] = opts["endpoint"]
    if opts.get("key"):
        overrides["master_key"] = opts["key"]
    if opts.get("log_level"):
        overrides["logging"] = {"level": opts["log_level"].upper()}

    config = ConfigManager().load(
        str(opts["config"]) if opts.get("config") else None,
        cli_overrides=overrides,
    )
    setup_logging(
        level=config.logging.level,
        format_type=config.logging.format,
        log_file=config.logging.file,
        rotation_size=config.logging.rotation_size,
        rotation_count=config.logging.rotation_count,
        module_levels=config.logging.module_levels,
    )
    return config


def _client(ctx: click.Context) -> CosmosClient:
    """Build a client for the current invocation, exiting on bad configuration."""
    try:
        config = _load_config(ctx)
    except (ConfigValidationError, FileNotFoundError, ValueError) as e:
        click.echo(f"[ERROR] Invalid configuration: {e}", err=True)
        sys.exit(1)

    if not config.master_key:
        click.echo("[ERROR] No master key configured (use --key or COSMOSLITE_KEY)", err=True)
        sys.exit(1)

    logger.debug(f"Connecting to {config.endpoint}")
    try:
        return CosmosClient.from_config(config, http_client=ctx.obj.get("http_client"))
    except CosmosError as e:
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)


def _parse_params(params: tuple) -> dict:
    """Parse ``name=value`` pairs; values are JSON when they parse as JSON."""
    parsed = {}
    for param in params:
        if "=" not in param:
            raise click.BadParameter(f"Expected name=value, got '{param}'", param_hint="--param")
        name, raw = param.split("=", 1)
        if not name.startswith("@"):
            name = f"@{name}"
        try:
            parsed[name] = json.loads(raw)
        except json.JSONDecodeError:
            parsed[name] = raw
    return parsed


@click.group()
@click.version_option(version=__version__, prog_name="cosmoslite")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (YAML or JSON)",
)
@click.option("--endpoint", help="Account endpoint (overrides COSMOSLITE_ENDPOINT)")
@click.option("--key", help="Master key (overrides COSMOSLITE_KEY)")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
@click.pass_context
def cli(ctx, config: Optional[Path], endpoint: Optional[str], key: Optional[str], log_level: Optional[str]):
    """
    Cosmoslite - Azure Cosmos DB SQL API client

    Inspect databases and collections and run queries.
    """
    ctx.ensure_object(dict)
    ctx.obj.update(config=config, endpoint=endpoint, key=key, log_level=log_level)


@cli.command()
@click.pass_context
def info(ctx):
    """
    Show database account properties.

    Example:
        cosmoslite --endpoint https://myaccount.documents.azure.com:443 --key ... info
    """
    with _client(ctx) as client:
        try:
            account = json.loads(client.get_info() or "{}")
        except CosmosError as e:
            click.echo(f"[ERROR] Failed to read account info: {e}", err=True)
            sys.exit(1)

    click.echo("[OK] Account reachable")
    click.echo(f"   ID: {account.get('id', '')}")
    for region in account.get("readableLocations", []):
        click.echo(f"   Readable: {region.get('name')} ({region.get('databaseAccountEndpoint')})")


@cli.command()
@click.pass_context
def databases(ctx):
    """
    List databases.

    Example:
        cosmoslite databases
    """
    with _client(ctx) as client:
        try:
            result = client.list_databases()
        except CosmosError as e:
            click.echo(f"[ERROR] Failed to list databases: {e}", err=True)
            sys.exit(1)

    if not result.databases:
        click.echo("No databases found.")
        return

    click.echo(f"Found {len(result.databases)} database(s):")
    for db in result.databases:
        click.echo(f"  - {db.id} (_rid: {db.rid})")


@cli.command()
@click.argument("database")
@click.pass_context
def collections(ctx, database: str):
    """
    List collections in a database.

    Example:
        cosmoslite collections mydb
    """
    with _client(ctx) as client:
        try:
            db = client.select_db(database)
            if db is None:
                click.echo(f"[ERROR] Database '{database}' not found", err=True)
                sys.exit(1)
            result = db.list_collections()
        except CosmosError as e:
            click.echo(f"[ERROR] Failed to list collections: {e}", err=True)
            sys.exit(1)

    if not result.document_collections:
        click.echo("No collections found.")
        return

    click.echo(f"Found {len(result.document_collections)} collection(s):")
    for coll in result.document_collections:
        click.echo(f"  - {coll.id} (_rid: {coll.rid})")


@cli.command()
@click.argument("database")
@click.argument("collection")
@click.argument("sql")
@click.option("--cross-partition", is_flag=True, help="Allow the query to fan out across partitions")
@click.option("--partition-value", help="Pin the query to one partition")
@click.option(
    "--param",
    "params",
    multiple=True,
    help="Query parameter in name=value format (can specify multiple times)",
)
@click.pass_context
def query(
    ctx,
    database: str,
    collection: str,
    sql: str,
    cross_partition: bool,
    partition_value: Optional[str],
    params: tuple,
):
    """
    Run a SQL query and print the aggregated result as JSON.

    Examples:
        cosmoslite query mydb users "SELECT * FROM c"
        cosmoslite query mydb users "SELECT * FROM c WHERE c.type = @type" --param type=admin
        cosmoslite query mydb users "SELECT * FROM c" --cross-partition
    """
    parameters = _parse_params(params)

    with _client(ctx) as client:
        try:
            db = client.select_db(database)
            coll = db.select_collection(collection) if db else None
            if coll is None:
                click.echo(f"[ERROR] Collection '{database}/{collection}' not found", err=True)
                sys.exit(1)
            pages = coll.query(
                sql,
                parameters,
                cross_partition=cross_partition,
                partition_value=partition_value,
            )
        except CosmosError as e:
            click.echo(f"[ERROR] Query failed: {e}", err=True)
            sys.exit(1)

    envelope = ResultEnvelope.from_pages(pages)
    click.echo(json.dumps(envelope.model_dump(by_alias=True), indent=2))


@cli.command()
def version():
    """Show Cosmoslite version."""
    click.echo(f"Cosmoslite version {__version__}")


def main():
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
