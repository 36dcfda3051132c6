"""
Immutable query plans.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from attrs import evolve, field, frozen

from .filters import Filter
from .ops import AddFilter, SetDataSource, SetOperations, _to_tuple

if TYPE_CHECKING:
    from .engine import QueryEngine
    from .model import ModelQuery

logger = logging.getLogger(__name__)


@frozen
class QueryPlan:
    """An ordered sequence of query operations.

    Plans are values: ``then`` returns a new plan and the original is left
    untouched, so a plan handed to an engine never changes underneath it.
    """

    operations: tuple[Any, ...] = field(converter=_to_tuple, default=())

    @classmethod
    def base(cls, model_query: ModelQuery, filters: Iterable[Filter] = ()) -> QueryPlan:
        """Reset plan: the upstream model query plus the active filters."""
        ops = [
            SetDataSource(model_query.data_source),
            SetOperations(tuple(model_query.operations)),
        ]
        filters = tuple(filters)
        if filters:
            ops.append(AddFilter(filters))
        return cls(ops)

    def then(self, *operations: Any) -> QueryPlan:
        return evolve(self, operations=(*self.operations, *operations))

    def apply(self, engine: QueryEngine) -> QueryEngine:
        """Replay the plan onto an engine without triggering execution."""
        engine.auto_execute = False
        for op in self.operations:
            op.apply(engine)
        logger.debug("Applied %d operations to %s", len(self.operations), type(engine).__name__)
        return engine

    def to_json(self) -> list[Mapping[str, Any]]:
        return [op.to_json() for op in self.operations]

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self):
        return iter(self.operations)

    def __getitem__(self, index):
        return self.operations[index]

    def __repr__(self) -> str:
        names = [type(op).__name__ for op in self.operations]
        return f"QueryPlan([{', '.join(names)}])"


__all__ = ["QueryPlan"]
