"""
Query execution engine.

``QueryEngine`` is the interface a compiled plan is replayed onto.
``IbisQuery`` implements it on top of ibis: the data source is looked up by
name, every operation is lowered onto the ibis table in order, and
``execute`` returns a pandas DataFrame.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import ibis
import ibis.expr.types as ir
from ibis import BaseBackend

from .filters import Filter, normalize_filters
from .ops import (
    AddFilter,
    AddMutate,
    AddOrderBy,
    AddPivotWider,
    AddSummarize,
    Column,
    Dimension,
    Expression,
    Measure,
    column,
)

logger = logging.getLogger(__name__)


class QueryEngine(Protocol):
    auto_execute: bool

    def set_data_source(self, data_source: str) -> None: ...

    def set_operations(self, operations: Sequence[Any]) -> None: ...

    def add_filter(self, filters: Sequence[Filter]) -> None: ...

    def add_summarize(self, measures: Sequence[Measure], dimensions: Sequence[Dimension]) -> None: ...

    def add_pivot_wider(
        self,
        rows: Sequence[Dimension],
        columns: Sequence[Dimension],
        values: Sequence[Measure],
    ) -> None: ...

    def add_order_by(self, column: Column | str, direction: str) -> None: ...

    def add_mutate(self, new_name: str, data_type: str, mutation: Expression) -> None: ...

    def execute(self) -> Any: ...


class IbisQuery:
    """Accumulates plan operations and executes them with ibis.

    Args:
        name: Name of the query, used in log messages.
        tables: Mapping of data source names to ibis tables.
        connection: Optional ibis backend used for data sources missing from ``tables``.
        auto_execute: Execute after every mutating call. Plans disable this
            while they are being applied.
    """

    def __init__(
        self,
        name: str = "query",
        tables: Mapping[str, ir.Table] | None = None,
        connection: BaseBackend | None = None,
        auto_execute: bool = True,
    ) -> None:
        self.name = name
        self.tables = dict(tables or {})
        self.connection = connection
        self.auto_execute = auto_execute
        self.data_source: str | None = None
        self.operations: list[Any] = []
        self.result: Any = None
        self.executions = 0

    def _changed(self) -> None:
        if self.auto_execute:
            self.execute()

    def set_data_source(self, data_source: str) -> None:
        self.data_source = data_source
        self.operations = []
        self._changed()

    def set_operations(self, operations: Sequence[Any]) -> None:
        self.operations = list(operations)
        self._changed()

    def add_operation(self, operation: Any) -> None:
        self.operations.append(operation)
        self._changed()

    def add_filter(self, filters: Sequence[Filter]) -> None:
        self.add_operation(AddFilter(normalize_filters(filters)))

    def add_summarize(self, measures: Sequence[Measure], dimensions: Sequence[Dimension]) -> None:
        self.add_operation(AddSummarize(measures=measures, dimensions=dimensions))

    def add_pivot_wider(
        self,
        rows: Sequence[Dimension],
        columns: Sequence[Dimension],
        values: Sequence[Measure],
    ) -> None:
        self.add_operation(AddPivotWider(rows=rows, columns=columns, values=values))

    def add_order_by(self, column: Column | str, direction: str = "asc") -> None:
        self.add_operation(AddOrderBy(_as_column(column), direction))

    def add_mutate(self, new_name: str, data_type: str, mutation: Expression) -> None:
        self.add_operation(AddMutate(new_name=new_name, data_type=data_type, mutation=mutation))

    def _source_table(self) -> ir.Table:
        if self.data_source is None:
            raise ValueError(f"Query '{self.name}' has no data source")
        if self.data_source in self.tables:
            return self.tables[self.data_source]
        if self.connection is not None:
            return self.connection.table(self.data_source)
        available = ", ".join(self.tables) or "none"
        raise KeyError(
            f"Unknown data source '{self.data_source}'. Available data sources: {available}"
        )

    def to_expr(self) -> ir.Table:
        """Lower the accumulated operations to an ibis table expression."""
        table = self._source_table()
        for op in self.operations:
            table = op.to_ibis(table)
        return table

    def sql(self) -> str:
        return str(ibis.to_sql(self.to_expr()))

    def execute(self) -> Any:
        expr = self.to_expr()
        logger.info(
            "Executing query %s on %s (%d operations)",
            self.name,
            self.data_source,
            len(self.operations),
        )
        self.result = expr.execute()
        self.executions += 1
        return self.result

    def __repr__(self) -> str:
        ops = ", ".join(type(op).__name__ for op in self.operations)
        return f"IbisQuery(name={self.name!r}, data_source={self.data_source!r}, operations=[{ops}])"


def _as_column(value: Column | str) -> Column:
    return value if isinstance(value, Column) else column(value)


__all__ = ["QueryEngine", "IbisQuery"]
