"""
Debounced callbacks on the asyncio event loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any


class Debouncer:
    """Collapse bursts of ``trigger()`` calls into one callback invocation.

    The callback runs once ``wait`` seconds have passed without a new
    trigger. Outside a running event loop there is nothing to wait on, so
    ``trigger()`` calls the callback immediately.

    Example:
        >>> refresh = Debouncer(chart.refresh, wait=0.5)
        >>> refresh.trigger()
        >>> refresh.trigger()  # restarts the window; refresh runs once
    """

    def __init__(self, callback: Callable[[], Any], wait: float = 0.5) -> None:
        self.callback = callback
        self.wait = wait
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._run()
            return
        self.cancel()
        self._handle = loop.call_later(self.wait, self._run)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        """Run a pending callback now."""
        if self._handle is not None:
            self.cancel()
            self._run()

    def _run(self) -> None:
        self._handle = None
        self.callback()


__all__ = ["Debouncer"]
