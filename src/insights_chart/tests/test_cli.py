"""Tests for the insights-chart CLI."""

import json

import ibis
import pandas as pd
import pytest
from click.testing import CliRunner

from insights_chart.chart_config import CHART_TYPES
from insights_chart.cli import cli

DEFINITIONS = """
models:
  orders:
    table: orders
    dimensions:
      region: region
    measures:
      revenue:
        column: amount
        aggregation: sum

charts:
  revenue_by_region:
    model: orders
    type: Donut
    config:
      label_column: region
      value_column: revenue
  broken:
    model: orders
    type: Donut
    config:
      value_column: revenue
"""


@pytest.fixture
def workspace(tmp_path):
    database = tmp_path / "sales.duckdb"
    con = ibis.duckdb.connect(str(database))
    con.create_table(
        "orders",
        pd.DataFrame({"region": ["EMEA", "EMEA", "APAC"], "amount": [10.0, 20.0, 5.0]}),
    )
    con.disconnect()

    definitions = tmp_path / "charts.yml"
    definitions.write_text(DEFINITIONS)
    return definitions, database


@pytest.fixture
def runner():
    return CliRunner()


def test_types(runner):
    result = runner.invoke(cli, ["types"])

    assert result.exit_code == 0
    assert result.output.split() == list(CHART_TYPES)


def test_compile(runner, workspace):
    definitions, database = workspace

    result = runner.invoke(cli, ["compile", str(definitions), "revenue_by_region", "-d", str(database)])

    assert result.exit_code == 0, result.output
    plan = json.loads(result.output)
    assert [op["type"] for op in plan] == ["source", "operations", "summarize", "order_by"]
    assert plan[-1] == {"type": "order_by", "column": "revenue", "direction": "desc"}


def test_compile_with_filter(runner, workspace):
    definitions, database = workspace

    result = runner.invoke(
        cli,
        [
            "compile",
            str(definitions),
            "revenue_by_region",
            "-d",
            str(database),
            "--filter",
            '{"field": "region", "operator": "=", "value": "EMEA"}',
            "--filter",
            "_.amount > 1",
        ],
    )

    assert result.exit_code == 0, result.output
    plan = json.loads(result.output)
    assert plan[2] == {
        "type": "filter",
        "filters": [{"field": "region", "operator": "=", "value": "EMEA"}, "_.amount > 1"],
    }


def test_run(runner, workspace):
    definitions, database = workspace

    result = runner.invoke(cli, ["run", str(definitions), "revenue_by_region", "-d", str(database)])

    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert lines[0].split() == ["region", "revenue"]
    assert lines[1].split() == ["EMEA", "30.0"]
    assert lines[2].split() == ["APAC", "5.0"]


def test_run_sql(runner, workspace):
    definitions, database = workspace

    result = runner.invoke(
        cli, ["run", str(definitions), "revenue_by_region", "-d", str(database), "--sql"]
    )

    assert result.exit_code == 0, result.output
    assert "ORDER BY" in result.output.upper()


def test_invalid_config(runner, workspace):
    definitions, database = workspace

    result = runner.invoke(cli, ["run", str(definitions), "broken", "-d", str(database)])

    assert result.exit_code == 1
    assert "Label is required" in result.output


def test_unknown_chart(runner, workspace):
    definitions, database = workspace

    result = runner.invoke(cli, ["compile", str(definitions), "missing", "-d", str(database)])

    assert result.exit_code == 1
    assert "Unknown chart 'missing'" in result.output
    assert "revenue_by_region" in result.output


def test_invalid_json_filter(runner, workspace):
    definitions, database = workspace

    result = runner.invoke(
        cli,
        ["compile", str(definitions), "revenue_by_region", "-d", str(database), "-f", "{oops"],
    )

    assert result.exit_code == 2
    assert "Invalid JSON filter" in result.output
