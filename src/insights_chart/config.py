"""
Global configuration for insights-chart.

Options follow the Ibis config pattern: attribute access for reading and
writing, or ``options.get``/``options.set`` with dotted paths.
"""

from typing import Optional

from ibis.config import Config


class Refresh(Config):
    """Options controlling how charts recompute.

    Attributes
    ----------
    debounce_ms : int
        Quiescence window in milliseconds. Changes to a chart's configuration
        or to its model's upstream operations that arrive closer together
        than this are collapsed into a single compile and execute cycle.

        Default: 500

    auto_refresh : bool
        Refresh charts automatically when their configuration or upstream
        operations change. When disabled, call ``chart.refresh()`` explicitly.

        Default: True
    """

    debounce_ms: int = 500
    auto_refresh: bool = True


class Storage(Config):
    """Options controlling where chart state is persisted.

    Attributes
    ----------
    namespace : str
        Prefix of every persisted chart key.

        Default: "insights:analysis-chart:"

    directory : str, optional
        Directory used by ``JsonFileStore`` when none is given explicitly.
        ``None`` means ``~/.config/insights-chart/charts``.
    """

    namespace: str = "insights:analysis-chart:"
    directory: Optional[str] = None


class Options(Config):
    """insights-chart configuration options.

    Attributes
    ----------
    refresh : Refresh
        Options controlling chart recompute.
    storage : Storage
        Options controlling chart persistence.
    default_chart_type : str
        Chart type of a new chart with no stored state.

    Example:
        >>> from insights_chart import options
        >>> options.refresh.debounce_ms = 250
        >>> options.set("storage.namespace", "team-a:analysis-chart:")
        >>> options.get("refresh.debounce_ms")
        250
    """

    refresh: Refresh = Refresh()
    storage: Storage = Storage()
    default_chart_type: str = "Bar"


# Global options instance
options = Options()
