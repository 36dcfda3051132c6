"""
Column references and query plan operations.

Dimensions and measures are immutable references into a data model catalog.
Plan operations are plain frozen values: they describe a step of a query and
know how to hand themselves to an execution engine (``apply``) and how to
lower themselves onto an ibis table (``to_ibis``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Literal

import ibis
import ibis.expr.types as ir
from attrs import field, frozen
from ibis.common.deferred import Deferred

from .utils import safe_eval

if TYPE_CHECKING:
    from .engine import QueryEngine
    from .filters import Filter


Aggregation = Literal["sum", "count", "avg", "min", "max", "count_distinct"]
Direction = Literal["asc", "desc"]

AGGREGATIONS: tuple[str, ...] = ("sum", "count", "avg", "min", "max", "count_distinct")

# Data type names used by derive operations, mapped to ibis type strings
DATA_TYPES: Mapping[str, str] = {
    "String": "string",
    "Text": "string",
    "Integer": "int64",
    "Decimal": "decimal(38, 9)",
    "Float": "float64",
    "Boolean": "boolean",
    "Date": "date",
    "Datetime": "timestamp",
    "Time": "time",
}


def _to_tuple(values: Iterable[Any] | None) -> tuple[Any, ...]:
    return tuple(values or ())


@frozen(kw_only=True, slots=True)
class Dimension:
    """A groupable column.

    ``column_name`` identifies the dimension in the data model and names its
    column in query results; ``source_column`` is the physical column it reads
    (defaults to ``column_name``).
    """

    column_name: str
    label: str = ""
    source_column: str = ""
    data_type: str | None = None

    def __attrs_post_init__(self) -> None:
        # Frozen: fill defaults through object.__setattr__
        if not self.source_column:
            object.__setattr__(self, "source_column", self.column_name)
        if not self.label:
            object.__setattr__(self, "label", self.column_name)

    def __call__(self, table: ir.Table) -> ir.Value:
        return table[self.source_column]

    def to_json(self) -> Mapping[str, Any]:
        base = {"column_name": self.column_name, "label": self.label}
        if self.source_column != self.column_name:
            base["source_column"] = self.source_column
        return {**base, "data_type": self.data_type} if self.data_type else base


@frozen(kw_only=True, slots=True)
class Measure:
    """An aggregated column, or a synthetic aggregate such as the row count."""

    column_name: str
    aggregation: Aggregation = "sum"
    label: str = ""
    source_column: str = ""

    def __attrs_post_init__(self) -> None:
        if self.aggregation not in AGGREGATIONS:
            raise ValueError(
                f"Unsupported aggregation '{self.aggregation}' for measure "
                f"'{self.column_name}'. Must be one of {list(AGGREGATIONS)}"
            )
        if not self.source_column:
            object.__setattr__(self, "source_column", self.column_name)
        if not self.label:
            object.__setattr__(self, "label", self.column_name)

    def __call__(self, table: ir.Table) -> ir.Value:
        if self.aggregation == "count":
            return table.count()
        col = table[self.source_column]
        if self.aggregation == "avg":
            return col.mean()
        if self.aggregation == "count_distinct":
            return col.nunique()
        return getattr(col, self.aggregation)()

    def to_json(self) -> Mapping[str, Any]:
        base = {
            "column_name": self.column_name,
            "aggregation": self.aggregation,
            "label": self.label,
        }
        if self.source_column != self.column_name:
            base["source_column"] = self.source_column
        return base


def count() -> Measure:
    """Default measure: number of rows."""
    return Measure(column_name="count", aggregation="count", label="Count")


@frozen(slots=True)
class Column:
    name: str

    def to_json(self) -> Mapping[str, Any]:
        return {"column": self.name}


@frozen(slots=True)
class Expression:
    """A derive expression such as ``literal(100)`` or ``_.amount * 2``."""

    expr: str

    def resolve(self, table: ir.Table) -> ir.Value:
        value = safe_eval(
            self.expr,
            context={"_": ibis._, "ibis": ibis, "literal": ibis.literal},
        ).unwrap()
        if isinstance(value, Deferred):
            return value.resolve(table)
        if isinstance(value, ir.Value):
            return value
        return ibis.literal(value)

    def to_json(self) -> Mapping[str, Any]:
        return {"expression": self.expr}


def column(name: str) -> Column:
    return Column(name)


def expression(expr: str) -> Expression:
    return Expression(expr)


def _named_dimensions(table: ir.Table, dimensions: Iterable[Dimension]) -> list[ir.Value]:
    return [dim(table).name(dim.column_name) for dim in dimensions]


def _named_measures(table: ir.Table, measures: Iterable[Measure]) -> dict[str, ir.Value]:
    return {measure.column_name: measure(table) for measure in measures}


@frozen(slots=True)
class SetDataSource:
    data_source: str

    def apply(self, engine: QueryEngine) -> None:
        engine.set_data_source(self.data_source)

    def to_json(self) -> Mapping[str, Any]:
        return {"type": "source", "data_source": self.data_source}


@frozen(slots=True)
class SetOperations:
    operations: tuple[Any, ...] = field(converter=_to_tuple, default=())

    def apply(self, engine: QueryEngine) -> None:
        engine.set_operations(list(self.operations))

    def to_json(self) -> Mapping[str, Any]:
        return {"type": "operations", "operations": [op.to_json() for op in self.operations]}


@frozen(slots=True)
class AddFilter:
    filters: tuple[Filter, ...] = field(converter=_to_tuple, default=())

    def apply(self, engine: QueryEngine) -> None:
        engine.add_filter(list(self.filters))

    def to_ibis(self, table: ir.Table) -> ir.Table:
        for flt in self.filters:
            table = table.filter(flt.to_callable()(table))
        return table

    def to_json(self) -> Mapping[str, Any]:
        return {"type": "filter", "filters": [flt.to_json() for flt in self.filters]}


@frozen(kw_only=True, slots=True)
class AddSummarize:
    measures: tuple[Measure, ...] = field(converter=_to_tuple, default=())
    dimensions: tuple[Dimension, ...] = field(converter=_to_tuple, default=())

    def apply(self, engine: QueryEngine) -> None:
        engine.add_summarize(measures=list(self.measures), dimensions=list(self.dimensions))

    def to_ibis(self, table: ir.Table) -> ir.Table:
        if not self.dimensions:
            measures = self.measures or (count(),)
            return table.aggregate(**_named_measures(table, measures))
        keys = _named_dimensions(table, self.dimensions)
        if not self.measures:
            return table.select(*keys).distinct()
        return table.group_by(keys).aggregate(**_named_measures(table, self.measures))

    def to_json(self) -> Mapping[str, Any]:
        return {
            "type": "summarize",
            "measures": [m.to_json() for m in self.measures],
            "dimensions": [d.to_json() for d in self.dimensions],
        }


@frozen(kw_only=True, slots=True)
class AddPivotWider:
    rows: tuple[Dimension, ...] = field(converter=_to_tuple, default=())
    columns: tuple[Dimension, ...] = field(converter=_to_tuple, default=())
    values: tuple[Measure, ...] = field(converter=_to_tuple, default=())

    def apply(self, engine: QueryEngine) -> None:
        engine.add_pivot_wider(
            rows=list(self.rows),
            columns=list(self.columns),
            values=list(self.values),
        )

    def to_ibis(self, table: ir.Table) -> ir.Table:
        # Aggregate at row x column grain first, then spread the column values
        values = self.values or (count(),)
        keys = _named_dimensions(table, (*self.rows, *self.columns))
        summary = table.group_by(keys).aggregate(**_named_measures(table, values))
        return summary.pivot_wider(
            id_cols=[dim.column_name for dim in self.rows],
            names_from=[dim.column_name for dim in self.columns],
            values_from=[measure.column_name for measure in values],
            names_sort=True,
        )

    def to_json(self) -> Mapping[str, Any]:
        return {
            "type": "pivot_wider",
            "rows": [d.to_json() for d in self.rows],
            "columns": [d.to_json() for d in self.columns],
            "values": [m.to_json() for m in self.values],
        }


@frozen(slots=True)
class AddOrderBy:
    column: Column
    direction: Direction = "asc"

    def __attrs_post_init__(self) -> None:
        if self.direction not in ("asc", "desc"):
            raise ValueError(f"Order direction must be 'asc' or 'desc', got '{self.direction}'")

    def apply(self, engine: QueryEngine) -> None:
        engine.add_order_by(column=self.column, direction=self.direction)

    def to_ibis(self, table: ir.Table) -> ir.Table:
        name = self.column.name
        return table.order_by(ibis.desc(name) if self.direction == "desc" else ibis.asc(name))

    def to_json(self) -> Mapping[str, Any]:
        return {"type": "order_by", **self.column.to_json(), "direction": self.direction}


@frozen(kw_only=True, slots=True)
class AddMutate:
    new_name: str
    data_type: str
    mutation: Expression

    def __attrs_post_init__(self) -> None:
        if self.data_type not in DATA_TYPES:
            raise ValueError(
                f"Unsupported data type '{self.data_type}'. Must be one of {list(DATA_TYPES)}"
            )

    def apply(self, engine: QueryEngine) -> None:
        engine.add_mutate(
            new_name=self.new_name,
            data_type=self.data_type,
            mutation=self.mutation,
        )

    def to_ibis(self, table: ir.Table) -> ir.Table:
        value = self.mutation.resolve(table).cast(DATA_TYPES[self.data_type])
        return table.mutate(**{self.new_name: value})

    def to_json(self) -> Mapping[str, Any]:
        return {
            "type": "mutate",
            "new_name": self.new_name,
            "data_type": self.data_type,
            **self.mutation.to_json(),
        }


def mutate(new_name: str, data_type: str, mutation: Expression | str) -> AddMutate:
    if isinstance(mutation, str):
        mutation = Expression(mutation)
    return AddMutate(new_name=new_name, data_type=data_type, mutation=mutation)


Operation = SetDataSource | SetOperations | AddFilter | AddSummarize | AddPivotWider | AddOrderBy | AddMutate

__all__ = [
    "Dimension",
    "Measure",
    "Column",
    "Expression",
    "SetDataSource",
    "SetOperations",
    "AddFilter",
    "AddSummarize",
    "AddPivotWider",
    "AddOrderBy",
    "AddMutate",
    "Operation",
    "count",
    "column",
    "expression",
    "mutate",
]
