"""
Per-chart query plan builders.

Each builder receives already-resolved dimensions and measures and appends
the operations its chart kind needs on top of a base (reset) plan.
"""

from __future__ import annotations

from collections.abc import Sequence

from .ops import (
    AddOrderBy,
    AddPivotWider,
    AddSummarize,
    Dimension,
    Measure,
    column,
    count,
    expression,
    mutate,
)
from .plan import QueryPlan
from .utils import format_number


def build_axis_plan(
    base: QueryPlan,
    row: Dimension,
    column_dim: Dimension | None = None,
    values: Sequence[Measure] = (),
) -> QueryPlan:
    values = tuple(values) or (count(),)
    if column_dim is not None:
        return base.then(AddPivotWider(rows=(row,), columns=(column_dim,), values=values))
    return base.then(AddSummarize(measures=values, dimensions=(row,)))


def build_metric_plan(
    base: QueryPlan,
    metric: Measure,
    target: Measure | float | None = None,
    date: Dimension | None = None,
) -> QueryPlan:
    """Summarize a single metric, optionally against a target or over dates.

    A numeric target only counts as a literal target when strictly positive;
    zero and negative values fall through to the remaining branches.
    """
    if isinstance(target, int | float) and target > 0:
        return base.then(
            AddSummarize(measures=(metric,), dimensions=()),
            mutate(
                new_name="target",
                data_type="Decimal",
                mutation=expression(f"literal({format_number(target)})"),
            ),
        )
    if isinstance(target, Measure):
        return base.then(AddSummarize(measures=(metric, target), dimensions=()))
    if date is not None:
        return base.then(AddSummarize(measures=(metric,), dimensions=(date,)))
    return base.then(AddSummarize(measures=(metric,), dimensions=()))


def build_donut_plan(base: QueryPlan, label: Dimension, value: Measure) -> QueryPlan:
    # Segments are ranked largest first
    return base.then(
        AddSummarize(measures=(value,), dimensions=(label,)),
        AddOrderBy(column(value.column_name), "desc"),
    )


def build_table_plan(
    base: QueryPlan,
    rows: Sequence[Dimension],
    columns: Sequence[Dimension] = (),
    values: Sequence[Measure] = (),
) -> QueryPlan:
    if columns:
        return base.then(AddPivotWider(rows=rows, columns=columns, values=values))
    return base.then(AddSummarize(measures=values, dimensions=rows))


__all__ = [
    "build_axis_plan",
    "build_metric_plan",
    "build_donut_plan",
    "build_table_plan",
]
