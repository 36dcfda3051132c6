"""
Persistence of chart state.

Charts persist a ``{name, type, config}`` mapping under a namespaced key.
``MemoryStore`` keeps it in process; ``JsonFileStore`` writes one JSON file
per key to a directory.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from .config import options
from .errors import StorageError

logger = logging.getLogger(__name__)


class ChartStore(Protocol):
    def load(self, key: str) -> dict[str, Any] | None: ...

    def save(self, key: str, value: Mapping[str, Any]) -> None: ...

    def delete(self, key: str) -> None: ...


def storage_key(name: str, namespace: str | None = None) -> str:
    """Namespaced key a chart is stored under."""
    if namespace is None:
        namespace = options.storage.namespace
    return f"{namespace}{name}"


class MemoryStore:
    """In-process chart store."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def load(self, key: str) -> dict[str, Any] | None:
        raw = self._items.get(key)
        return json.loads(raw) if raw is not None else None

    def save(self, key: str, value: Mapping[str, Any]) -> None:
        # Store serialized so callers never share mutable state with the store
        self._items[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]")


class JsonFileStore:
    """Chart store writing one JSON file per key."""

    def __init__(self, directory: str | Path | None = None) -> None:
        if directory is None:
            directory = options.storage.directory or (
                Path.home() / ".config" / "insights-chart" / "charts"
            )
        self.directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE_FILENAME.sub('_', key)}.json"

    def load(self, key: str) -> dict[str, Any] | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            content = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read chart state from {path}: {e}") from e
        if not isinstance(content, dict):
            raise StorageError(f"Chart state in {path} must be an object, got: {type(content)}")
        return content

    def save(self, key: str, value: Mapping[str, Any]) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(value, indent=2))
        except OSError as e:
            raise StorageError(f"Failed to write chart state to {path}: {e}") from e
        logger.debug("Saved chart state %s to %s", key, path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


__all__ = ["ChartStore", "MemoryStore", "JsonFileStore", "storage_key"]
