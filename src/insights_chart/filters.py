"""
Filter predicates applied to every chart plan.

Filters arrive from outside the chart (dashboard filters, cross-filters) as
JSON objects, ibis-style string expressions or callables, and are lowered to
ibis boolean expressions against the current table.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from operator import eq, ge, gt, le, lt, ne
from typing import Any, ClassVar

import ibis
import ibis.expr.datatypes as dt
import ibis.expr.types as ir
from attrs import frozen
from ibis.common.collections import FrozenDict

from .utils import safe_eval

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}")


def _convert_filter_value(value: Any, target_type: dt.DataType | None = None) -> Any:
    """Convert string date/timestamp values to typed ibis literals."""
    if not isinstance(value, str):
        return value

    if target_type is not None:
        if target_type.is_date():
            return ibis.literal(value, type="date")
        if target_type.is_timestamp():
            return ibis.literal(value, type="timestamp")
        return value

    if _DATE_PATTERN.match(value):
        return ibis.literal(value, type="date")
    if _TIMESTAMP_PATTERN.match(value):
        return ibis.literal(value, type="timestamp")
    return value


def _get_column_type(table: ir.Table, field: str) -> dt.DataType | None:
    return table[field].type() if field in table.columns else None


def _ibis_isin(x, y):
    return x.isin(y)


def _ibis_not_isin(x, y):
    return ~x.isin(y)


def _ibis_like(x, y):
    return x.like(y)


def _ibis_not_like(x, y):
    return ~x.like(y)


def _ibis_ilike(x, y):
    return x.ilike(y)


def _ibis_isnull(x, _):
    return x.isnull()


def _ibis_notnull(x, _):
    return x.notnull()


def _ibis_and(x, y):
    return x & y


def _ibis_or(x, y):
    return x | y


OPERATOR_MAPPING: FrozenDict = FrozenDict(
    {
        "=": eq,
        "eq": eq,
        "equals": eq,
        "!=": ne,
        ">": gt,
        ">=": ge,
        "<": lt,
        "<=": le,
        "in": _ibis_isin,
        "not in": _ibis_not_isin,
        "like": _ibis_like,
        "not like": _ibis_not_like,
        "ilike": _ibis_ilike,
        "is null": _ibis_isnull,
        "is not null": _ibis_notnull,
        "AND": _ibis_and,
        "OR": _ibis_or,
    }
)


@frozen(kw_only=True, slots=True)
class Filter:
    """
    A single filter predicate.

    Examples:
        Filter(filter={"field": "region", "operator": "=", "value": "EMEA"})

        Filter(filter={
            "operator": "OR",
            "conditions": [
                {"field": "region", "operator": "=", "value": "EMEA"},
                {"field": "amount", "operator": ">", "value": 100},
            ]
        })

        Filter(filter="_.amount > 100")

        Filter(filter=lambda t: t.amount > 100)
    """

    filter: Mapping | str | Callable

    OPERATORS: ClassVar[set] = set(OPERATOR_MAPPING.keys())
    COMPOUND_OPERATORS: ClassVar[set] = {"AND", "OR"}

    def __attrs_post_init__(self) -> None:
        if not isinstance(self.filter, Mapping | str) and not callable(self.filter):
            raise ValueError("Filter must be a dict, string, or callable")

    def _parse_json_filter(self, filter_obj: Mapping, table: ir.Table) -> ir.BooleanValue:
        if filter_obj.get("operator") in self.COMPOUND_OPERATORS:
            conditions = filter_obj.get("conditions")
            if not conditions:
                raise ValueError("Compound filter must have non-empty conditions list")
            expr = self._parse_json_filter(conditions[0], table)
            for cond in conditions[1:]:
                expr = OPERATOR_MAPPING[filter_obj["operator"]](
                    expr, self._parse_json_filter(cond, table)
                )
            return expr

        field = filter_obj.get("field")
        op = filter_obj.get("operator")
        if field is None or op is None:
            raise KeyError("Missing required keys in filter: 'field' and 'operator' are required")
        if op not in self.OPERATORS:
            raise ValueError(f"Unsupported operator: {op}")

        field_expr = table[field]
        target_type = _get_column_type(table, field)

        if op in ("in", "not in"):
            values = filter_obj.get("values")
            if values is None:
                raise ValueError(f"Operator '{op}' requires 'values' field")
            return OPERATOR_MAPPING[op](
                field_expr, [_convert_filter_value(v, target_type) for v in values]
            )

        if op in ("is null", "is not null"):
            if any(k in filter_obj for k in ("value", "values")):
                raise ValueError(f"Operator '{op}' should not have 'value' or 'values' fields")
            return OPERATOR_MAPPING[op](field_expr, None)

        value = filter_obj.get("value")
        if value is None:
            raise ValueError(f"Operator '{op}' requires 'value' field")
        return OPERATOR_MAPPING[op](field_expr, _convert_filter_value(value, target_type))

    def to_callable(self) -> Callable[[ir.Table], ir.BooleanValue]:
        """Return a function mapping a table to a boolean predicate."""
        if isinstance(self.filter, Mapping):
            return lambda t: self._parse_json_filter(self.filter, t)
        if isinstance(self.filter, str):
            expr = safe_eval(self.filter, context={"_": ibis._, "ibis": ibis}).unwrap()
            return lambda t: expr.resolve(t)
        return self.filter

    def to_json(self) -> Any:
        if isinstance(self.filter, Mapping):
            return dict(self.filter)
        if isinstance(self.filter, str):
            return self.filter
        return "<callable>"


def normalize_filters(
    filters: Iterable[Mapping[str, Any] | str | Callable | Filter] | None,
) -> tuple[Filter, ...]:
    """Coerce raw filters into ``Filter`` objects."""
    return tuple(
        flt if isinstance(flt, Filter) else Filter(filter=flt) for flt in (filters or ())
    )


__all__ = ["Filter", "OPERATOR_MAPPING", "normalize_filters"]
