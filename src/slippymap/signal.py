"""Observer lists for the viewport core.

:class:`~slippymap.core.MapViewport` announces bounds changes, clicks,
warnings and animation start/stop through :class:`Signal`, and the tile load
tracker announces ``tiles_changed`` the same way. Nothing here imports Qt;
:class:`~slippymap.map_widget.MapWidget` forwards each one to a Qt signal.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

_logger = logging.getLogger(__name__)


class Signal:
    """Ordered list of viewport observers.

    A handler is registered at most once and called in connection order. A
    handler that raises is logged and skipped; later handlers still run.
    Connecting and emitting are safe from any thread.
    """

    def __init__(self) -> None:
        self._handlers: list[Callable] = []
        self._lock = threading.Lock()

    def connect(self, handler: Callable) -> None:
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)

    def disconnect(self, handler: Callable) -> None:
        """Remove *handler*; raises :class:`ValueError` if it was never connected."""
        with self._lock:
            self._handlers.remove(handler)

    def disconnect_all(self) -> None:
        """Drop every observer, called from :meth:`MapViewport.dispose`."""
        with self._lock:
            self._handlers.clear()

    def emit(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(*args, **kwargs)
            except Exception as exc:
                _logger.error("Viewport observer %r failed: %s", handler, exc)

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)


__all__ = ["Signal"]
