"""Bookkeeping for cross-fading tiles across rounded zoom changes."""

from __future__ import annotations

import logging

from ..signal import Signal
from .viewport import TileValues

_LOGGER = logging.getLogger(__name__)


class TileLoadTracker:
    """Keep stale layouts visible until the tiles replacing them have loaded.

    Whenever the committed rounded zoom changes the layout that was on screen
    is pushed onto the stale list and every tile of the new layout is tracked
    as pending. Renderers report images through :meth:`mark_loaded` or
    :meth:`mark_missing`; once nothing is pending all stale layouts are
    dropped in a single step.
    """

    def __init__(self) -> None:
        self.tiles_changed = Signal()
        self._stale: list[TileValues] = []
        self._pending: set[str] = set()
        self._missing: set[str] = set()

    # ------------------------------------------------------------------
    @property
    def stale_values(self) -> list[TileValues]:
        return list(self._stale)

    # ------------------------------------------------------------------
    def pending_tiles(self) -> set[str]:
        """Expose the set of tiles still awaited for diagnostics/testing."""

        return set(self._pending)

    # ------------------------------------------------------------------
    def is_tile_missing(self, key: str) -> bool:
        """Return ``True`` when *key* previously failed to load."""

        return key in self._missing

    # ------------------------------------------------------------------
    def begin_transition(self, previous: TileValues, following: TileValues) -> None:
        """Retain *previous* as stale and start tracking *following*."""

        self._stale = [
            old for old in self._stale if old.rounded_zoom != previous.rounded_zoom
        ]
        self._stale.append(previous)
        self._pending = {
            key for key in following.tile_keys() if key not in self._missing
        }
        _LOGGER.debug(
            "Zoom level %s -> %s, tracking %d tiles with %d stale layouts",
            previous.rounded_zoom,
            following.rounded_zoom,
            len(self._pending),
            len(self._stale),
        )
        self._settle()

    # ------------------------------------------------------------------
    def mark_loaded(self, key: str) -> bool:
        """Record that *key* finished loading.

        Returns ``True`` when this completed the transition and the stale
        layouts were dropped.
        """

        self._missing.discard(key)
        if key not in self._pending:
            return False
        self._pending.discard(key)
        return self._settle()

    # ------------------------------------------------------------------
    def mark_missing(self, key: str) -> bool:
        """Record that *key* cannot be loaded so it no longer blocks the fade."""

        self._missing.add(key)
        if key not in self._pending:
            return False
        self._pending.discard(key)
        return self._settle()

    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Forget every stale layout and pending tile."""

        had_stale = bool(self._stale)
        self._stale = []
        self._pending = set()
        if had_stale:
            self.tiles_changed.emit()

    # ------------------------------------------------------------------
    def _settle(self) -> bool:
        if self._pending or not self._stale:
            return False
        self._stale = []
        _LOGGER.debug("All tiles loaded, dropping stale layouts")
        self.tiles_changed.emit()
        return True


__all__ = ["TileLoadTracker"]
