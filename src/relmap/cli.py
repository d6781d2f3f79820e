"""
Command-line interface for relmap.

Provides snapshot, classify, diagram and describe commands over a live MySQL
database, a saved snapshot file, or CSV exports of the information schema.
"""

from __future__ import annotations

import functools
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from relmap import __version__
from relmap.config import Settings, load_settings
from relmap.errors import RelmapError
from relmap.inference import classify_snapshot, junction_tables
from relmap.models import ClassificationResult, SchemaSnapshot

console = Console()
err_console = Console(stderr=True)

KIND_STYLES = {
    "one-to-one": "magenta",
    "one-to-many": "blue",
    "many-to-one": "green",
    "many-to-many": "yellow",
    "self-referencing": "red",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )


def source_options(func: Callable) -> Callable:
    """Options selecting where schema metadata comes from."""
    options = [
        click.option(
            "--snapshot",
            type=click.Path(exists=True, path_type=Path),
            default=None,
            help="Snapshot file (.yaml/.json) written by `relmap snapshot`",
        ),
        click.option(
            "--csv_dir",
            type=click.Path(exists=True, file_okay=False, path_type=Path),
            default=None,
            help="Directory with columns.csv, key_column_usage.csv and statistics.csv",
        ),
        click.option("--host", type=str, default=None, help="MySQL host"),
        click.option("--port", type=int, default=None, help="MySQL port (default 3306)"),
        click.option("--user", type=str, default=None, help="MySQL user"),
        click.option("--password", type=str, default=None, help="MySQL password"),
        click.option("--database", type=str, default=None, help="MySQL database to inspect"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def handle_errors(func: Callable) -> Callable:
    """Report relmap errors on the console and exit with status 1."""
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except RelmapError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)
    return wrapper


def load_source(
    settings: Settings,
    snapshot: Optional[Path],
    csv_dir: Optional[Path],
) -> SchemaSnapshot:
    """Collect schema metadata from the selected source."""
    if snapshot:
        from relmap.metadata import load_snapshot
        return load_snapshot(snapshot)

    if csv_dir:
        from relmap.metadata import load_information_schema_csv
        return load_information_schema_csv(csv_dir)

    if not settings.has_mysql:
        raise RelmapError(
            "No metadata source. Use --snapshot, --csv_dir, or MySQL options "
            "(--host, --user, --database)"
        )

    from relmap.metadata import MySQLMetadataExtractor

    with MySQLMetadataExtractor.from_settings(settings) as extractor:
        return extractor.get_snapshot()


def _settings_for(ctx: click.Context, **overrides: Any) -> Settings:
    mysql = {
        "mysql_host": overrides.pop("host", None),
        "mysql_port": overrides.pop("port", None),
        "mysql_user": overrides.pop("user", None),
        "mysql_password": overrides.pop("password", None),
        "mysql_database": overrides.pop("database", None),
    }
    return ctx.obj["settings"].merged({**mysql, **overrides})


def print_relationships(result: ClassificationResult) -> None:
    """Print classified relationships and warnings as Rich tables."""
    if not result.classifications:
        console.print("\n[yellow]No relationships found.[/yellow]")
    else:
        rel_table = Table(title="Relationships")
        rel_table.add_column("Table", style="cyan")
        rel_table.add_column("Column", style="green")
        rel_table.add_column("References", style="yellow")
        rel_table.add_column("Kind")
        rel_table.add_column("Cardinality", justify="center")
        rel_table.add_column("Constraint", style="dim")

        for rel in result.classifications:
            style = KIND_STYLES.get(rel.kind.value, "white")
            rel_table.add_row(
                rel.source_table,
                rel.source_column,
                f"{rel.referenced_table}.{rel.referenced_column}",
                f"[{style}]{rel.kind.value}[/{style}]",
                rel.cardinality,
                rel.constraint_name or "-",
            )

        console.print(rel_table)

    if result.warnings:
        warn_table = Table(title="Skipped Foreign Keys")
        warn_table.add_column("Reason", style="red")
        warn_table.add_column("Foreign Key", style="cyan")

        for warning in result.warnings:
            warn_table.add_row(warning.code.value, str(warning.edge))

        console.print(warn_table)


@click.group()
@click.version_option(version=__version__, prog_name="relmap")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML settings file",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_file: Optional[Path]) -> None:
    """
    relmap - Relationship classification for MySQL schemas

    Classify foreign keys as 1:1, N:1 or M:N for schema diagrams and AI prompts.
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["settings"] = load_settings(config_file)
    except RelmapError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.option("--host", type=str, default=None, help="MySQL host")
@click.option("--port", type=int, default=None, help="MySQL port (default 3306)")
@click.option("--user", type=str, default=None, help="MySQL user")
@click.option("--password", type=str, default=None, help="MySQL password")
@click.option("--database", type=str, default=None, help="MySQL database to inspect")
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    required=True,
    help="Snapshot file to write (.yaml or .json)",
)
@click.pass_context
@handle_errors
def snapshot(ctx: click.Context, output: Path, **connection: Any) -> None:
    """
    Read schema metadata from MySQL and save it as a snapshot file.

    Example:

        relmap snapshot --host localhost --user root --database shop \\
            --output shop.yaml
    """
    from relmap.metadata import save_snapshot

    settings = _settings_for(ctx, **connection)
    console.print("[bold blue]relmap - Schema Snapshot[/bold blue]")

    schema = load_source(settings, None, None)
    save_snapshot(schema, output)

    console.print(
        f"\n[green]Saved {len(schema.tables)} tables and "
        f"{len(schema.foreign_keys)} foreign keys to: {output}[/green]"
    )


@cli.command()
@source_options
@click.option(
    "--keep_self_references",
    is_flag=True,
    help="Report self-referencing foreign keys instead of dropping them",
)
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Write relationships to a .json, .yaml or .csv file",
)
@click.pass_context
@handle_errors
def classify(
    ctx: click.Context,
    snapshot: Optional[Path],
    csv_dir: Optional[Path],
    keep_self_references: bool,
    output: Optional[Path],
    **connection: Any,
) -> None:
    """
    Classify every foreign key in a schema.

    Examples:

        # From a saved snapshot
        relmap classify --snapshot shop.yaml

        # Straight from MySQL, saving results as CSV
        relmap classify --host localhost --user root --database shop \\
            --output relationships.csv
    """
    settings = _settings_for(ctx, **connection)
    if keep_self_references:
        settings = settings.merged({"self_reference_policy": "tag"})

    console.print("[bold blue]relmap - Relationship Classification[/bold blue]")

    schema = load_source(settings, snapshot, csv_dir)
    result = classify_snapshot(schema, keep_self_references=settings.keep_self_references)

    console.print(f"Schema: {schema.schema or 'N/A'}")
    console.print(f"Tables: {len(schema.tables)}")

    junctions = junction_tables(schema.table_stats)
    if junctions:
        console.print(f"Junction tables: {', '.join(junctions)}")

    print_relationships(result)

    if output:
        from relmap.output import write_result

        try:
            write_result(result, output, schema=schema.schema)
        except ValueError as e:
            raise RelmapError(str(e)) from e
        console.print(f"\n[green]Saved relationships to: {output}[/green]")


@cli.command()
@source_options
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Write diagram JSON to this file instead of stdout",
)
@click.pass_context
@handle_errors
def diagram(
    ctx: click.Context,
    snapshot: Optional[Path],
    csv_dir: Optional[Path],
    output: Optional[Path],
    **connection: Any,
) -> None:
    """
    Build diagram nodes and typed edges as JSON.

    Example:

        relmap diagram --snapshot shop.yaml --output shop_diagram.json
    """
    from relmap.output import build_diagram

    settings = _settings_for(ctx, **connection)
    schema = load_source(settings, snapshot, csv_dir)
    result = classify_snapshot(schema, keep_self_references=settings.keep_self_references)
    document = json.dumps(build_diagram(schema, result.classifications).to_dict(), indent=2)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(document)
        console.print(f"[green]Saved diagram to: {output}[/green]")
    else:
        click.echo(document)


@cli.command()
@source_options
@click.option(
    "--table",
    "tables",
    multiple=True,
    help="Only describe this table (repeatable)",
)
@click.pass_context
@handle_errors
def describe(
    ctx: click.Context,
    snapshot: Optional[Path],
    csv_dir: Optional[Path],
    tables: tuple,
    **connection: Any,
) -> None:
    """
    Print a natural-language schema description for AI prompts.

    Example:

        relmap describe --snapshot shop.yaml --table orders
    """
    from relmap.output import describe_schema

    settings = _settings_for(ctx, **connection)
    schema = load_source(settings, snapshot, csv_dir)
    result = classify_snapshot(schema, keep_self_references=settings.keep_self_references)

    click.echo(describe_schema(schema, result.classifications, list(tables) or None))


if __name__ == "__main__":
    cli()
