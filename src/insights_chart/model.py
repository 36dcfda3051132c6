"""
Data model catalog consumed by the chart compiler.

A ``DataModel`` wraps an ibis table with a catalog of named dimensions and
measures, plus the upstream query (data source and operation list) every
chart plan starts from.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import ibis.expr.types as ir
from attrs import define, evolve, field, frozen
from returns.maybe import Maybe, Nothing

from .ops import Dimension, Measure, _to_tuple

logger = logging.getLogger(__name__)


@frozen
class ModelQuery:
    """Read-only snapshot of the upstream query of a data model."""

    data_source: str
    operations: tuple[Any, ...] = field(converter=_to_tuple, default=())


def _parse_dimension(name: str, config: str | Mapping | Dimension) -> Dimension:
    if isinstance(config, Dimension):
        return evolve(config, column_name=name)
    if isinstance(config, str):
        return Dimension(column_name=name, source_column=config)
    if isinstance(config, Mapping):
        return Dimension(
            column_name=name,
            source_column=config.get("column", name),
            label=config.get("label", ""),
            data_type=config.get("data_type"),
        )
    raise ValueError(f"Invalid dimension format for '{name}'. Must be a string, dict or Dimension")


def _parse_measure(name: str, config: str | Mapping | Measure) -> Measure:
    if isinstance(config, Measure):
        return evolve(config, column_name=name)
    if isinstance(config, str):
        return Measure(column_name=name, source_column=config)
    if isinstance(config, Mapping):
        return Measure(
            column_name=name,
            source_column=config.get("column", name),
            aggregation=config.get("aggregation", "sum"),
            label=config.get("label", ""),
        )
    raise ValueError(f"Invalid measure format for '{name}'. Must be a string, dict or Measure")


@define(eq=False)
class DataModel:
    """Tabular data model exposing typed column lookup.

    Examples:
        >>> model = (
        ...     to_data_model(orders, "orders")
        ...     .with_dimensions(region="region", quarter={"column": "qtr", "label": "Quarter"})
        ...     .with_measures(revenue={"column": "amount", "aggregation": "sum"})
        ... )
        >>> model.get_dimension("region")
        <Some: Dimension(column_name='region', ...)>
    """

    table: ir.Table
    name: str
    dimensions: Mapping[str, Dimension] = field(factory=dict)
    measures: Mapping[str, Measure] = field(factory=dict)
    query: ModelQuery = field(default=None)
    _subscribers: list[Callable[[ModelQuery], Any]] = field(factory=list, init=False)

    def __attrs_post_init__(self) -> None:
        if self.query is None:
            self.query = ModelQuery(self.name)

    def with_dimensions(self, **dims: str | Mapping | Dimension) -> DataModel:
        parsed = {name: _parse_dimension(name, cfg) for name, cfg in dims.items()}
        return evolve(self, dimensions={**self.dimensions, **parsed})

    def with_measures(self, **measures: str | Mapping | Measure) -> DataModel:
        parsed = {name: _parse_measure(name, cfg) for name, cfg in measures.items()}
        return evolve(self, measures={**self.measures, **parsed})

    def with_inferred_columns(self) -> DataModel:
        """Add a dimension for every column and a ``sum`` measure for every numeric column."""
        schema = self.table.schema()
        dims = {
            col: Dimension(column_name=col, data_type=str(dtype))
            for col, dtype in schema.items()
            if col not in self.dimensions
        }
        measures = {
            col: Measure(column_name=col, aggregation="sum")
            for col, dtype in schema.items()
            if dtype.is_numeric() and col not in self.measures
        }
        return evolve(
            self,
            dimensions={**self.dimensions, **dims},
            measures={**self.measures, **measures},
        )

    def get_dimension(self, name: str | None) -> Maybe[Dimension]:
        return Maybe.from_optional(self.dimensions.get(name)) if name else Nothing

    def get_measure(self, name: str | None) -> Maybe[Measure]:
        return Maybe.from_optional(self.measures.get(name)) if name else Nothing

    def set_operations(self, operations: Iterable[Any]) -> None:
        """Replace the upstream operation list and notify subscribers."""
        self.query = evolve(self.query, operations=operations)
        logger.debug(
            "Model %s upstream operations changed (%d operations)",
            self.name,
            len(self.query.operations),
        )
        for callback in list(self._subscribers):
            callback(self.query)

    def subscribe(self, callback: Callable[[ModelQuery], Any]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[ModelQuery], Any]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def __repr__(self) -> str:
        return (
            f"DataModel(name={self.name!r}, dimensions={list(self.dimensions)}, "
            f"measures={list(self.measures)})"
        )


def to_data_model(table: ir.Table, name: str | None = None) -> DataModel:
    """Create a data model over an ibis table."""
    if name is None:
        name = table.get_name()
    return DataModel(table=table, name=name)


__all__ = ["DataModel", "ModelQuery", "to_data_model"]
