"""CLI for insights-chart."""

import json
import logging
from pathlib import Path

import click
import ibis

from insights_chart.compiler import list_chart_types
from insights_chart.engine import IbisQuery
from insights_chart.yaml import from_yaml


def _parse_filters(raw_filters):
    """Filters given on the command line: JSON objects or ibis expressions."""
    filters = []
    for raw in raw_filters:
        if raw.lstrip().startswith("{"):
            try:
                filters.append(json.loads(raw))
            except json.JSONDecodeError as e:
                raise click.BadParameter(f"Invalid JSON filter {raw!r}: {e}") from e
        else:
            filters.append(raw)
    return filters


def _load(definitions: Path, database: str, chart: str):
    connection = ibis.duckdb.connect(database)
    loaded = from_yaml(definitions, connection=connection)
    if chart not in loaded["charts"]:
        available = ", ".join(sorted(loaded["charts"])) or "none"
        raise click.ClickException(f"Unknown chart '{chart}'. Available charts: {available}")
    return connection, loaded["models"], loaded["charts"][chart]


_definitions_argument = click.argument(
    "definitions", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
_database_option = click.option(
    "--database",
    "-d",
    default=":memory:",
    show_default=True,
    help="DuckDB database holding the model tables",
)
_filter_option = click.option(
    "--filter",
    "-f",
    "filters",
    multiple=True,
    help='Filter as JSON (\'{"field": "region", "operator": "=", "value": "EMEA"}\') '
    "or an ibis expression ('_.amount > 100'). Repeatable.",
)


@click.group()
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v info, -vv debug)")
def cli(verbose: int):
    """Compile and run analysis charts defined in YAML."""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@cli.command("compile")
@_definitions_argument
@click.argument("chart")
@_database_option
@_filter_option
def compile_command(definitions: Path, chart: str, database: str, filters: tuple):
    """Print the query plan of CHART as JSON.

    Examples:
        insights-chart compile charts.yml revenue_by_region -d sales.duckdb
    """
    try:
        _, models, definition = _load(definitions, database, chart)
        plan = definition.compile(models, _parse_filters(filters))
    except (ValueError, KeyError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps(plan.to_json(), indent=2, default=str))


@cli.command("run")
@_definitions_argument
@click.argument("chart")
@_database_option
@_filter_option
@click.option("--sql", is_flag=True, help="Print the compiled SQL instead of executing it")
def run_command(definitions: Path, chart: str, database: str, filters: tuple, sql: bool):
    """Execute CHART against a DuckDB database and print the result.

    Examples:
        insights-chart run charts.yml revenue_by_region -d sales.duckdb
        insights-chart run charts.yml revenue_by_region -d sales.duckdb --sql
    """
    try:
        connection, models, definition = _load(definitions, database, chart)
        plan = definition.compile(models, _parse_filters(filters))
        engine = IbisQuery(
            chart,
            tables={name: model.table for name, model in models.items()},
            connection=connection,
        )
        plan.apply(engine)
        if sql:
            click.echo(engine.sql())
            return
        result = engine.execute()
    except (ValueError, KeyError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(result.to_string(index=False))


@cli.command("types")
def types_command():
    """List the supported chart types."""
    for chart_type in list_chart_types():
        click.echo(chart_type)


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
