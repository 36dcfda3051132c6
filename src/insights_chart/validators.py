"""
Structural checks on chart configurations, run before any column is resolved.
"""

from __future__ import annotations

import math
from typing import Any

from .chart_config import (
    AxisChartConfig,
    DonutChartConfig,
    MetricChartConfig,
    TableChartConfig,
)
from .errors import ConflictingFieldsError, MissingFieldError


def is_set(value: Any) -> bool:
    """A field is set unless it is None or an empty string."""
    return value is not None and value != ""


def has_target_value(value: Any) -> bool:
    """Numeric zero and NaN leave a target value unset; strings and negatives do not."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not math.isnan(value)
    return is_set(value)


def validate_axis(config: AxisChartConfig) -> None:
    if not config.x_axis:
        raise MissingFieldError("X-axis is required", fields=("x_axis",))
    if config.x_axis == config.split_by:
        raise ConflictingFieldsError(
            "X-axis and split-by cannot be the same", fields=("x_axis", "split_by")
        )


def validate_metric(config: MetricChartConfig) -> None:
    if has_target_value(config.target_value) and is_set(config.target_column):
        raise ConflictingFieldsError(
            "Target value and target column cannot be used together",
            fields=("target_value", "target_column"),
        )
    if is_set(config.target_column) and config.metric_column == config.target_column:
        raise ConflictingFieldsError(
            "Metric and target cannot be the same", fields=("metric_column", "target_column")
        )
    if is_set(config.target_column) and is_set(config.date_column):
        raise ConflictingFieldsError(
            "Target and date cannot be used together", fields=("target_column", "date_column")
        )


def validate_donut(config: DonutChartConfig) -> None:
    if not config.label_column:
        raise MissingFieldError("Label is required", fields=("label_column",))
    if not config.value_column:
        raise MissingFieldError("Value is required", fields=("value_column",))


def validate_table(config: TableChartConfig) -> None:
    if not config.rows:
        raise MissingFieldError("Rows are required", fields=("rows",))


__all__ = [
    "has_target_value",
    "is_set",
    "validate_axis",
    "validate_metric",
    "validate_donut",
    "validate_table",
]
