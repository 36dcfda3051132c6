"""
Resolve configured column names to dimensions and measures.

Resolution is two-tiered: ``dimension``/``measure`` return ``Maybe`` and never
raise, list resolution drops unknown names, and ``require_*`` turns absence
into an ``UnknownColumnError`` for fields a chart cannot do without.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from attrs import frozen
from returns.maybe import Maybe, Some

from .errors import UnknownColumnError
from .ops import Dimension, Measure


class ColumnCatalog(Protocol):
    def get_dimension(self, name: str | None) -> Maybe[Dimension]: ...

    def get_measure(self, name: str | None) -> Maybe[Measure]: ...


def _somes(values: Iterable[Maybe]) -> tuple:
    return tuple(value.unwrap() for value in values if isinstance(value, Some))


def _available(catalog: ColumnCatalog, attr: str) -> list[str]:
    return list(getattr(catalog, attr, {}) or {})


@frozen
class ColumnResolver:
    catalog: ColumnCatalog

    def dimension(self, name: str | None) -> Maybe[Dimension]:
        return self.catalog.get_dimension(name)

    def measure(self, name: str | None) -> Maybe[Measure]:
        return self.catalog.get_measure(name)

    def dimensions(self, names: Iterable[str]) -> tuple[Dimension, ...]:
        return _somes(self.dimension(name) for name in names)

    def measures(self, names: Iterable[str]) -> tuple[Measure, ...]:
        return _somes(self.measure(name) for name in names)

    def require_dimension(self, name: str | None, field: str) -> Dimension:
        resolved = self.dimension(name)
        if not isinstance(resolved, Some):
            raise UnknownColumnError.for_column(
                field, name, "dimension", _available(self.catalog, "dimensions")
            )
        return resolved.unwrap()

    def require_measure(self, name: str | None, field: str) -> Measure:
        resolved = self.measure(name)
        if not isinstance(resolved, Some):
            raise UnknownColumnError.for_column(
                field, name, "measure", _available(self.catalog, "measures")
            )
        return resolved.unwrap()


__all__ = ["ColumnCatalog", "ColumnResolver"]
