"""
Chart configuration variants, one per chart kind.

A chart carries a type tag (``"Bar"``, ``"Metric"``, ...) and a configuration
holding the column selections for that kind of chart. Configurations only
hold column *names*; resolution against a data model happens at compile time.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Literal

from attrs import asdict, field, frozen

from .errors import UnknownChartTypeError

AxisChartType = Literal["Bar", "Line", "Row", "Area", "Scatter"]
ChartType = Literal["Bar", "Line", "Row", "Area", "Scatter", "Metric", "Donut", "Table"]

AXIS_CHARTS: tuple[str, ...] = ("Bar", "Line", "Row", "Area", "Scatter")
CHART_TYPES: tuple[str, ...] = (*AXIS_CHARTS, "Metric", "Donut", "Table")


def _names(values: Iterable[str] | str | None) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,) if values else ()
    return tuple(values)


@frozen(kw_only=True)
class AxisChartConfig:
    x_axis: str | None = None
    split_by: str | None = None
    y_axis: tuple[str, ...] = field(converter=_names, default=())


@frozen(kw_only=True)
class MetricChartConfig:
    metric_column: str | None = None
    target_value: float | str | None = None
    target_column: str | None = None
    date_column: str | None = None


@frozen(kw_only=True)
class DonutChartConfig:
    label_column: str | None = None
    value_column: str | None = None


@frozen(kw_only=True)
class TableChartConfig:
    rows: tuple[str, ...] = field(converter=_names, default=())
    columns: tuple[str, ...] = field(converter=_names, default=())
    values: tuple[str, ...] = field(converter=_names, default=())


ChartConfig = AxisChartConfig | MetricChartConfig | DonutChartConfig | TableChartConfig


def config_class(chart_type: str) -> type:
    """Return the configuration variant used by a chart type."""
    if chart_type in AXIS_CHARTS:
        return AxisChartConfig
    variants = {
        "Metric": MetricChartConfig,
        "Donut": DonutChartConfig,
        "Table": TableChartConfig,
    }
    if chart_type not in variants:
        raise UnknownChartTypeError(
            f"Unsupported chart type: {chart_type}. Available chart types: {', '.join(CHART_TYPES)}"
        )
    return variants[chart_type]


def default_config(chart_type: str) -> ChartConfig:
    return config_class(chart_type)()


def parse_chart_config(chart_type: str, config: Mapping[str, Any] | None) -> ChartConfig:
    """Build the configuration variant for ``chart_type`` from a plain mapping.

    Keys that do not belong to the variant are ignored, so a configuration
    saved for one chart type can be reused after switching types.
    """
    cls = config_class(chart_type)
    if isinstance(config, cls):
        return config
    known = {a.name for a in cls.__attrs_attrs__}
    return cls(**{k: v for k, v in dict(config or {}).items() if k in known})


def config_to_json(config: ChartConfig) -> dict[str, Any]:
    return asdict(config)


__all__ = [
    "AXIS_CHARTS",
    "CHART_TYPES",
    "ChartType",
    "ChartConfig",
    "AxisChartConfig",
    "MetricChartConfig",
    "DonutChartConfig",
    "TableChartConfig",
    "config_class",
    "default_config",
    "parse_chart_config",
    "config_to_json",
]
