"""
Compile chart configurations into query plans.

Every chart type is registered with exactly one compiler. A compiler
validates the configuration, resolves its columns against the data model
and hands the resolved columns to the matching plan builder.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from returns.maybe import Some

from .builders import build_axis_plan, build_donut_plan, build_metric_plan, build_table_plan
from .chart_config import (
    AXIS_CHARTS,
    AxisChartConfig,
    ChartConfig,
    DonutChartConfig,
    MetricChartConfig,
    TableChartConfig,
    config_class,
    parse_chart_config,
)
from .errors import ChartTypeMismatchError, UnknownChartTypeError
from .filters import Filter, normalize_filters
from .model import DataModel
from .plan import QueryPlan
from .resolver import ColumnResolver
from .validators import validate_axis, validate_donut, validate_metric, validate_table

logger = logging.getLogger(__name__)

Compiler = Callable[[Any, ColumnResolver, QueryPlan], QueryPlan]

# Compiler registry keyed by chart type
_COMPILERS: dict[str, Compiler] = {}


def register_compiler(chart_type: str, compiler: Compiler) -> None:
    """Register the compiler used for a chart type."""
    _COMPILERS[chart_type] = compiler


def get_compiler(chart_type: str) -> Compiler:
    if chart_type not in _COMPILERS:
        raise UnknownChartTypeError(
            f"Unsupported chart type: {chart_type}. "
            f"Available chart types: {', '.join(_COMPILERS.keys())}"
        )
    return _COMPILERS[chart_type]


def list_chart_types() -> list[str]:
    return list(_COMPILERS.keys())


def _target_number(value: Any) -> float | None:
    """Numeric value of a literal target, or None when it is not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if isinstance(value, int | float) and math.isfinite(value):
        return float(value)
    return None


def compile_axis(config: AxisChartConfig, resolver: ColumnResolver, base: QueryPlan) -> QueryPlan:
    validate_axis(config)
    row = resolver.require_dimension(config.x_axis, "x_axis")
    split = resolver.dimension(config.split_by)
    values = resolver.measures(config.y_axis)
    return build_axis_plan(
        base,
        row,
        split.unwrap() if isinstance(split, Some) else None,
        values,
    )


def compile_metric(
    config: MetricChartConfig,
    resolver: ColumnResolver,
    base: QueryPlan,
) -> QueryPlan:
    validate_metric(config)
    metric = resolver.require_measure(config.metric_column, "metric_column")
    date = resolver.dimension(config.date_column).value_or(None)

    target: Any = _target_number(config.target_value)
    if target is None or target <= 0:
        target = resolver.measure(config.target_column).value_or(None)
    return build_metric_plan(base, metric, target, date)


def compile_donut(config: DonutChartConfig, resolver: ColumnResolver, base: QueryPlan) -> QueryPlan:
    validate_donut(config)
    label = resolver.require_dimension(config.label_column, "label_column")
    value = resolver.require_measure(config.value_column, "value_column")
    return build_donut_plan(base, label, value)


def compile_table(config: TableChartConfig, resolver: ColumnResolver, base: QueryPlan) -> QueryPlan:
    validate_table(config)
    return build_table_plan(
        base,
        resolver.dimensions(config.rows),
        resolver.dimensions(config.columns),
        resolver.measures(config.values),
    )


def compile_chart(
    chart_type: str,
    config: ChartConfig | Mapping[str, Any] | None,
    model: DataModel,
    filters: Iterable[Mapping[str, Any] | str | Callable | Filter] = (),
) -> QueryPlan:
    """Compile a chart configuration into a fresh query plan.

    Args:
        chart_type: Chart type tag, e.g. ``"Bar"`` or ``"Metric"``.
        config: Configuration variant for ``chart_type``, or a plain mapping.
        model: Data model providing column lookup and the upstream query.
        filters: Filters applied right after the base reset.

    Returns:
        QueryPlan: base reset operations followed by the chart's own operations.

    Raises:
        ConfigError: If the configuration is invalid. Raised before any plan is built.
        UnknownChartTypeError: If no compiler is registered for ``chart_type``.
        ChartTypeMismatchError: If ``config`` is a variant for another chart type.
    """
    compiler = get_compiler(chart_type)
    expected = config_class(chart_type)
    if config is None or isinstance(config, Mapping):
        config = parse_chart_config(chart_type, config)
    elif not isinstance(config, expected):
        raise ChartTypeMismatchError(
            f"{chart_type} charts expect {expected.__name__}, got {type(config).__name__}"
        )

    base = QueryPlan.base(model.query, normalize_filters(filters))
    plan = compiler(config, ColumnResolver(model), base)
    logger.debug("Compiled %s chart on %s: %r", chart_type, model.name, plan)
    return plan


def run_chart(
    chart_type: str,
    config: ChartConfig | Mapping[str, Any] | None,
    model: DataModel,
    engine: Any,
    filters: Iterable[Mapping[str, Any] | str | Callable | Filter] = (),
) -> Any:
    """Compile a chart, replay the full plan onto ``engine`` and execute it once."""
    plan = compile_chart(chart_type, config, model, filters)
    plan.apply(engine)
    return engine.execute()


def _register_builtin_compilers() -> None:
    for chart_type in AXIS_CHARTS:
        register_compiler(chart_type, compile_axis)
    register_compiler("Metric", compile_metric)
    register_compiler("Donut", compile_donut)
    register_compiler("Table", compile_table)


_register_builtin_compilers()


__all__ = [
    "compile_chart",
    "run_chart",
    "register_compiler",
    "get_compiler",
    "list_chart_types",
    "compile_axis",
    "compile_metric",
    "compile_donut",
    "compile_table",
]
