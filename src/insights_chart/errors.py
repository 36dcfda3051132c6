"""
Error types raised while compiling chart configurations into query plans.
"""

from __future__ import annotations

import difflib
from collections.abc import Iterable


class ConfigError(ValueError):
    """Raised when a chart configuration cannot be compiled.

    Attributes
    ----------
    kind : str
        One of ``"MissingField"``, ``"ConflictingFields"`` or ``"UnknownColumn"``.
    fields : tuple[str, ...]
        Configuration fields involved in the failure.
    """

    kind: str = "ConfigError"

    def __init__(self, message: str, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.fields = tuple(fields)


class MissingFieldError(ConfigError):
    """A required configuration field is empty or absent."""

    kind = "MissingField"


class ConflictingFieldsError(ConfigError):
    """Two configuration fields cannot be used together."""

    kind = "ConflictingFields"


class UnknownColumnError(ConfigError):
    """A required column does not exist in the data model."""

    kind = "UnknownColumn"

    @classmethod
    def for_column(
        cls,
        field: str,
        name: str | None,
        role: str,
        available: Iterable[str] = (),
    ) -> UnknownColumnError:
        available = list(available)
        suggestions = difflib.get_close_matches(name or "", available, n=3, cutoff=0.6)
        suggestion_text = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
        return cls(
            f"{field} column not found: unknown {role} '{name}'.{suggestion_text} "
            f"Available {role}s: {', '.join(available) or 'none'}",
            fields=(field,),
        )


class UnknownChartTypeError(ValueError):
    """Raised when no compiler is registered for a chart type."""


class ChartTypeMismatchError(ValueError):
    """Raised when a chart configuration variant does not match its chart type."""


class StorageError(Exception):
    """Raised when persisted chart state cannot be read or written."""


__all__ = [
    "ConfigError",
    "MissingFieldError",
    "ConflictingFieldsError",
    "UnknownColumnError",
    "UnknownChartTypeError",
    "ChartTypeMismatchError",
    "StorageError",
]
