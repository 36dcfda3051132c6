"""
Analysis charts: a named chart over a data model that keeps its query in sync.

An ``AnalysisChart`` owns its chart type, configuration, filters and query
engine. Changes to its configuration, or to the upstream operations of its
data model, schedule a debounced refresh that compiles a fresh plan and
executes it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from attrs import evolve

from .chart_config import ChartConfig, config_to_json, parse_chart_config
from .compiler import compile_chart, get_compiler
from .config import options
from .debounce import Debouncer
from .engine import IbisQuery, QueryEngine
from .errors import ConfigError
from .filters import Filter, normalize_filters
from .model import DataModel, ModelQuery
from .plan import QueryPlan
from .storage import ChartStore, storage_key

logger = logging.getLogger(__name__)


class AnalysisChart:
    """A chart bound to a data model.

    Args:
        name: Chart name; also the key its state is persisted under.
        model: Data model the chart queries.
        chart_type: Initial chart type. Defaults to ``options.default_chart_type``.
        config: Initial configuration (variant or mapping).
        query: Engine the compiled plan is replayed onto. Defaults to an
            ``IbisQuery`` over the model's table.
        store: Optional persistence. Stored state is restored when its name
            matches ``name``, and saved after every type or config change.
        filters: Filters applied to every plan.
        auto_refresh: Watch config and model changes. Defaults to
            ``options.refresh.auto_refresh``.
        debounce_ms: Quiescence window. Defaults to ``options.refresh.debounce_ms``.
    """

    def __init__(
        self,
        name: str,
        model: DataModel,
        chart_type: str | None = None,
        config: ChartConfig | Mapping[str, Any] | None = None,
        query: QueryEngine | None = None,
        store: ChartStore | None = None,
        filters: Iterable[Mapping[str, Any] | str | Callable | Filter] = (),
        auto_refresh: bool | None = None,
        debounce_ms: int | None = None,
    ) -> None:
        self.name = name
        self.model = model
        self.type = chart_type or options.default_chart_type
        get_compiler(self.type)
        self.config = parse_chart_config(self.type, config)
        self.filters = normalize_filters(filters)
        self.query = query if query is not None else IbisQuery(name, tables={model.name: model.table})
        self.store = store
        self.plan: QueryPlan | None = None
        self.result: Any = None
        self.error: Exception | None = None

        self._restore()

        if debounce_ms is None:
            debounce_ms = options.refresh.debounce_ms
        self._model_refresh = Debouncer(self._background_refresh, debounce_ms / 1000)
        self._config_refresh = Debouncer(self._background_refresh, debounce_ms / 1000)

        self.auto_refresh = options.refresh.auto_refresh if auto_refresh is None else auto_refresh
        if self.auto_refresh:
            model.subscribe(self._on_model_change)

    @property
    def storage_key(self) -> str:
        return storage_key(self.name)

    def _restore(self) -> None:
        if self.store is None:
            return
        stored = self.store.load(self.storage_key)
        if not stored or stored.get("name") != self.name:
            return
        self.type = stored.get("type") or self.type
        self.config = parse_chart_config(self.type, stored.get("config"))
        logger.info("Restored chart %s (%s) from %s", self.name, self.type, self.storage_key)

    def _persist(self) -> None:
        if self.store is not None:
            self.store.save(self.storage_key, self.serialize())

    def _on_model_change(self, _query: ModelQuery) -> None:
        self._model_refresh.trigger()

    def _config_changed(self) -> None:
        self._persist()
        if self.auto_refresh:
            self._config_refresh.trigger()

    def set_type(self, chart_type: str) -> None:
        """Switch chart type, carrying over the config fields both types share."""
        get_compiler(chart_type)
        self.type = chart_type
        self.config = parse_chart_config(chart_type, config_to_json(self.config))
        self._config_changed()

    def set_config(self, config: ChartConfig | Mapping[str, Any] | None) -> None:
        self.config = parse_chart_config(self.type, config)
        self._config_changed()

    def update_config(self, **changes: Any) -> None:
        self.config = evolve(self.config, **changes)
        self._config_changed()

    def set_filters(self, filters: Iterable[Mapping[str, Any] | str | Callable | Filter]) -> None:
        self.filters = normalize_filters(filters)

    def compile(self) -> QueryPlan:
        return compile_chart(self.type, self.config, self.model, self.filters)

    def _background_refresh(self) -> None:
        try:
            self.refresh()
        except Exception as e:
            logger.exception("Chart %s refresh failed", self.name)
            self.error = e

    def refresh(self, raise_errors: bool = False) -> Any:
        """Compile the current configuration and execute the resulting plan.

        An invalid configuration leaves the previous plan and result in place
        and is recorded on ``error``. It is re-raised when ``raise_errors`` is set.
        """
        try:
            plan = self.compile()
        except ConfigError as e:
            logger.warning("Chart %s not refreshed: %s", self.name, e)
            self.error = e
            if raise_errors:
                raise
            return None

        self.error = None
        self.plan = plan
        plan.apply(self.query)
        self.result = self.query.execute()
        return self.result

    def serialize(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "config": config_to_json(self.config),
        }

    @property
    def pending(self) -> bool:
        return self._model_refresh.pending or self._config_refresh.pending

    def flush(self) -> None:
        """Run any pending debounced refresh now."""
        self._model_refresh.flush()
        self._config_refresh.flush()

    def close(self) -> None:
        self.model.unsubscribe(self._on_model_change)
        self._model_refresh.cancel()
        self._config_refresh.cancel()

    def __repr__(self) -> str:
        return f"AnalysisChart(name={self.name!r}, type={self.type!r}, config={self.config!r})"


def analysis_chart(name: str, model: DataModel, **kwargs: Any) -> AnalysisChart:
    """Create an analysis chart bound to ``model``."""
    return AnalysisChart(name, model, **kwargs)


__all__ = ["AnalysisChart", "analysis_chart"]
