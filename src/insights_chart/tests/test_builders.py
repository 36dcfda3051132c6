"""Tests for plan builders and QueryPlan."""

import pytest

from insights_chart.builders import (
    build_axis_plan,
    build_donut_plan,
    build_metric_plan,
    build_table_plan,
)
from insights_chart.filters import Filter
from insights_chart.model import ModelQuery
from insights_chart.ops import (
    AddFilter,
    AddMutate,
    AddOrderBy,
    AddPivotWider,
    AddSummarize,
    Column,
    Dimension,
    Expression,
    Measure,
    SetDataSource,
    SetOperations,
    count,
)
from insights_chart.plan import QueryPlan

REGION = Dimension(column_name="region")
QUARTER = Dimension(column_name="quarter")
REVENUE = Measure(column_name="revenue", source_column="amount")
GOAL = Measure(column_name="goal")


@pytest.fixture
def base():
    return QueryPlan.base(ModelQuery("orders"))


class TestQueryPlan:
    def test_base_without_filters(self, base):
        assert list(base) == [SetDataSource("orders"), SetOperations(())]

    def test_base_with_filters(self):
        flt = Filter(filter="_.amount > 1")
        plan = QueryPlan.base(ModelQuery("orders"), [flt])
        assert plan[-1] == AddFilter((flt,))

    def test_then_leaves_original_untouched(self, base):
        extended = base.then(AddOrderBy(Column("revenue")))
        assert len(base) == 2
        assert len(extended) == 3

    def test_repr(self, base):
        assert repr(base) == "QueryPlan([SetDataSource, SetOperations])"

    def test_to_json(self, base):
        plan = build_donut_plan(base, REGION, REVENUE)
        assert plan.to_json()[-1] == {"type": "order_by", "column": "revenue", "direction": "desc"}
        assert plan.to_json()[0] == {"type": "source", "data_source": "orders"}


class TestAxisBuilder:
    def test_summarize(self, base):
        plan = build_axis_plan(base, REGION, values=[REVENUE])
        assert plan[-1] == AddSummarize(measures=(REVENUE,), dimensions=(REGION,))

    def test_pivot(self, base):
        plan = build_axis_plan(base, REGION, QUARTER, [REVENUE])
        assert plan[-1] == AddPivotWider(rows=(REGION,), columns=(QUARTER,), values=(REVENUE,))

    def test_default_count(self, base):
        assert build_axis_plan(base, REGION, QUARTER)[-1].values == (count(),)


class TestMetricBuilder:
    def test_literal_target(self, base):
        plan = build_metric_plan(base, REVENUE, 1500.0)
        assert list(plan)[-2:] == [
            AddSummarize(measures=(REVENUE,)),
            AddMutate(new_name="target", data_type="Decimal", mutation=Expression("literal(1500)")),
        ]

    @pytest.mark.parametrize("target", [0, 0.0, -1])
    def test_non_positive_target_is_ignored(self, base, target):
        plan = build_metric_plan(base, REVENUE, target, REGION)
        assert plan[-1] == AddSummarize(measures=(REVENUE,), dimensions=(REGION,))

    def test_measure_target(self, base):
        plan = build_metric_plan(base, REVENUE, GOAL, REGION)
        assert plan[-1] == AddSummarize(measures=(REVENUE, GOAL))

    def test_plain(self, base):
        assert build_metric_plan(base, REVENUE)[-1] == AddSummarize(measures=(REVENUE,))


class TestTableBuilder:
    def test_columns_select_pivot(self, base):
        plan = build_table_plan(base, [REGION], [QUARTER], [REVENUE])
        assert plan[-1] == AddPivotWider(rows=(REGION,), columns=(QUARTER,), values=(REVENUE,))

    def test_without_columns(self, base):
        plan = build_table_plan(base, [REGION, QUARTER])
        assert plan[-1] == AddSummarize(dimensions=(REGION, QUARTER))


def test_mutate_requires_known_data_type():
    with pytest.raises(ValueError, match="Unsupported data type"):
        AddMutate(new_name="x", data_type="Money", mutation=Expression("literal(1)"))


def test_order_by_direction():
    with pytest.raises(ValueError, match="asc"):
        AddOrderBy(Column("revenue"), "down")
