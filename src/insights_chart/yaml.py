"""
YAML loading for data models and chart definitions.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

import ibis.expr.types as ir
from attrs import frozen
from ibis import BaseBackend

from .chart import AnalysisChart
from .chart_config import ChartConfig, parse_chart_config
from .compiler import compile_chart
from .filters import Filter
from .model import DataModel, to_data_model
from .plan import QueryPlan
from .utils import read_yaml_file


@frozen
class ChartDefinition:
    """A named chart read from YAML: model name, chart type and configuration."""

    name: str
    model: str
    type: str
    config: ChartConfig

    def _model(self, models: Mapping[str, DataModel]) -> DataModel:
        if self.model not in models:
            available = ", ".join(sorted(models)) or "none"
            raise KeyError(
                f"Chart '{self.name}' references unknown model '{self.model}'. "
                f"Available models: {available}"
            )
        return models[self.model]

    def compile(
        self,
        models: Mapping[str, DataModel],
        filters: Iterable[Mapping[str, Any] | str | Callable | Filter] = (),
    ) -> QueryPlan:
        return compile_chart(self.type, self.config, self._model(models), filters)

    def to_chart(self, models: Mapping[str, DataModel], **kwargs: Any) -> AnalysisChart:
        return AnalysisChart(
            self.name,
            self._model(models),
            chart_type=self.type,
            config=self.config,
            **kwargs,
        )


def _resolve_table(
    table_name: str,
    tables: Mapping[str, ir.Table],
    connection: BaseBackend | None,
) -> ir.Table:
    if table_name in tables:
        return tables[table_name]
    if connection is not None:
        return connection.table(table_name)
    available = ", ".join(sorted(tables)) or "none"
    raise KeyError(f"Table '{table_name}' not found. Available: {available}")


def _parse_model(
    name: str,
    config: Mapping[str, Any],
    tables: Mapping[str, ir.Table],
    connection: BaseBackend | None,
) -> DataModel:
    table_name = config.get("table")
    if not table_name:
        raise ValueError(f"Model '{name}' must specify 'table' field")

    model = to_data_model(_resolve_table(table_name, tables, connection), name=name)
    if config.get("dimensions"):
        model = model.with_dimensions(**config["dimensions"])
    if config.get("measures"):
        model = model.with_measures(**config["measures"])
    if config.get("infer"):
        model = model.with_inferred_columns()
    return model


def _parse_chart(name: str, config: Mapping[str, Any]) -> ChartDefinition:
    model = config.get("model")
    chart_type = config.get("type")
    if not model or not chart_type:
        raise ValueError(f"Chart '{name}' must specify 'model' and 'type' fields")
    return ChartDefinition(
        name=name,
        model=model,
        type=chart_type,
        config=parse_chart_config(chart_type, config.get("config")),
    )


def from_yaml(
    yaml_path: str | Path,
    tables: Mapping[str, ir.Table] | None = None,
    connection: BaseBackend | None = None,
) -> dict[str, dict[str, Any]]:
    """
    Load data models and chart definitions from a YAML file.

    Args:
        yaml_path: Path to the YAML file
        tables: Optional mapping of table names to ibis tables
        connection: Optional ibis backend used for tables missing from ``tables``

    Returns:
        ``{"models": {name: DataModel}, "charts": {name: ChartDefinition}}``

    Example YAML format:
        models:
          orders:
            table: orders
            dimensions:
              region: region
              quarter:
                column: qtr
                label: Quarter
            measures:
              revenue:
                column: amount
                aggregation: sum
              orders: {column: id, aggregation: count}
        charts:
          revenue_by_region:
            model: orders
            type: Bar
            config:
              x_axis: region
              y_axis: [revenue]
    """
    content = read_yaml_file(yaml_path)
    tables = dict(tables or {})

    models = {
        name: _parse_model(name, config or {}, tables, connection)
        for name, config in (content.get("models") or {}).items()
    }
    charts = {
        name: _parse_chart(name, config or {})
        for name, config in (content.get("charts") or {}).items()
    }

    for chart in charts.values():
        if chart.model not in models:
            raise ValueError(f"Chart '{chart.name}' references unknown model '{chart.model}'")

    return {"models": models, "charts": charts}


__all__ = ["ChartDefinition", "from_yaml"]
