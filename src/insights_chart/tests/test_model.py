"""
Tests for DataModel, column references and ColumnResolver.
"""

import ibis
import pytest
from returns.maybe import Nothing, Some

from insights_chart import to_data_model
from insights_chart.errors import UnknownColumnError
from insights_chart.model import ModelQuery
from insights_chart.ops import AddFilter, Dimension, Measure, count
from insights_chart.resolver import ColumnResolver


@pytest.fixture(scope="module")
def orders_table():
    return ibis.table(
        {"region": "string", "qtr": "string", "amount": "float64", "id": "int64"},
        name="orders",
    )


@pytest.fixture
def model(orders_table):
    return (
        to_data_model(orders_table, "orders")
        .with_dimensions(region="region", quarter={"column": "qtr", "label": "Quarter"})
        .with_measures(
            revenue={"column": "amount", "aggregation": "sum"},
            orders={"column": "id", "aggregation": "count_distinct", "label": "Orders"},
        )
    )


class TestDataModel:
    def test_name_defaults_to_table_name(self, orders_table):
        assert to_data_model(orders_table).name == "orders"

    def test_dimension_formats(self, model):
        assert model.dimensions["region"] == Dimension(column_name="region")
        assert model.dimensions["quarter"] == Dimension(
            column_name="quarter", source_column="qtr", label="Quarter"
        )

    def test_measure_formats(self, model):
        revenue = model.measures["revenue"]
        assert revenue.source_column == "amount"
        assert revenue.label == "revenue"
        assert model.measures["orders"].aggregation == "count_distinct"

    def test_instances_are_renamed_to_their_key(self, model):
        model = model.with_measures(rows=count())
        assert model.measures["rows"] == Measure(column_name="rows", aggregation="count", label="Count")

    def test_invalid_format(self, model):
        with pytest.raises(ValueError, match="Invalid dimension format"):
            model.with_dimensions(region=42)

    def test_unknown_aggregation(self, model):
        with pytest.raises(ValueError, match="Unsupported aggregation"):
            model.with_measures(total={"column": "amount", "aggregation": "median"})

    def test_with_methods_return_new_models(self, model):
        extended = model.with_dimensions(id="id")
        assert "id" in extended.dimensions
        assert "id" not in model.dimensions

    def test_inferred_columns(self, orders_table):
        model = to_data_model(orders_table).with_inferred_columns()
        assert set(model.dimensions) == {"region", "qtr", "amount", "id"}
        assert set(model.measures) == {"amount", "id"}
        assert model.dimensions["amount"].data_type == "float64"

    def test_inferred_columns_keep_explicit_ones(self, model):
        inferred = model.with_inferred_columns()
        assert inferred.dimensions["quarter"].source_column == "qtr"
        assert inferred.measures["revenue"] == model.measures["revenue"]

    def test_lookup(self, model):
        assert model.get_dimension("region") == Some(model.dimensions["region"])
        assert model.get_dimension("revenue") == Nothing
        assert model.get_measure("revenue") == Some(model.measures["revenue"])
        assert model.get_measure("") == Nothing
        assert model.get_measure(None) == Nothing

    def test_query_defaults_to_model_table(self, model):
        assert model.query == ModelQuery("orders")

    def test_set_operations_notifies_subscribers(self, model):
        received = []
        model.subscribe(received.append)
        op = AddFilter(())

        model.set_operations([op])

        assert model.query.operations == (op,)
        assert received == [ModelQuery("orders", (op,))]

        model.unsubscribe(received.append)
        model.set_operations([])
        assert len(received) == 1

    def test_query_snapshots_are_immutable(self, model):
        before = model.query
        model.set_operations([AddFilter(())])
        assert before.operations == ()


class TestColumnResolver:
    def test_maybe_lookup(self, model):
        resolver = ColumnResolver(model)
        assert resolver.dimension("quarter").unwrap().source_column == "qtr"
        assert resolver.measure("quarter") == Nothing
        assert resolver.dimension(None) == Nothing

    def test_best_effort_lists(self, model):
        resolver = ColumnResolver(model)
        assert resolver.dimensions(["region", "nope", "quarter"]) == (
            model.dimensions["region"],
            model.dimensions["quarter"],
        )
        assert resolver.measures(["nope"]) == ()

    def test_require(self, model):
        resolver = ColumnResolver(model)
        assert resolver.require_measure("revenue", "value_column") == model.measures["revenue"]

        with pytest.raises(UnknownColumnError) as exc_info:
            resolver.require_dimension("revenue", "label_column")

        error = exc_info.value
        assert error.kind == "UnknownColumn"
        assert error.fields == ("label_column",)
        assert "Available dimensions: region, quarter" in str(error)

    def test_require_suggests_close_matches(self, model):
        with pytest.raises(UnknownColumnError, match="Did you mean: revenue"):
            ColumnResolver(model).require_measure("revenu", "metric_column")


class TestColumnReferences:
    def test_measure_expressions(self, orders_table):
        assert Measure(column_name="amount", aggregation="avg")(orders_table).equals(
            orders_table.amount.mean()
        )
        assert count()(orders_table).equals(orders_table.count())

    def test_to_json(self, model):
        assert model.dimensions["quarter"].to_json() == {
            "column_name": "quarter",
            "label": "Quarter",
            "source_column": "qtr",
        }
        assert count().to_json() == {"column_name": "count", "aggregation": "count", "label": "Count"}
