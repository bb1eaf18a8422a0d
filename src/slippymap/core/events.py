"""Toolkit-neutral input events consumed by the gesture interpreter.

Hosts translate their native mouse, touch and wheel events into these values.
All coordinates are relative to the map container and all timestamps are in
milliseconds on the same clock that drives :meth:`MapViewport.tick`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .geometry import GeoPoint, PixelPoint

PRIMARY_BUTTON = 0


@dataclass(frozen=True)
class PointerEvent:
    """A mouse press, move, release or double click."""

    x: float
    y: float
    timestamp: float
    button: int = PRIMARY_BUTTON
    # Set by the host when the pointer is over an element that must not start
    # a drag (``drag_blocked``) or must not report clicks (``click_blocked``).
    drag_blocked: bool = False
    click_blocked: bool = False
    native: Any = None

    @property
    def pixel(self) -> PixelPoint:
        return PixelPoint(self.x, self.y)


@dataclass(frozen=True)
class TouchPoint:
    x: float
    y: float

    @property
    def pixel(self) -> PixelPoint:
        return PixelPoint(self.x, self.y)


@dataclass(frozen=True)
class TouchEvent:
    """A touch start, move or end.

    ``touches`` lists the fingers still on the surface, ``changed_touches``
    the fingers this event is about (the lifted ones for a touch end).
    """

    touches: tuple[TouchPoint, ...]
    timestamp: float
    changed_touches: tuple[TouchPoint, ...] = field(default_factory=tuple)
    drag_blocked: bool = False
    native: Any = None


@dataclass(frozen=True)
class WheelEvent:
    """A wheel step; positive ``delta_y`` scrolls down (zooms out)."""

    x: float
    y: float
    delta_y: float
    timestamp: float
    meta_key: bool = False
    native: Any = None

    @property
    def pixel(self) -> PixelPoint:
        return PixelPoint(self.x, self.y)


@dataclass(frozen=True)
class ClickEvent:
    """Published when a press/release or tap did not move the map."""

    lat_lng: GeoPoint
    pixel: PixelPoint
    event: Any = None


__all__ = [
    "ClickEvent",
    "PRIMARY_BUTTON",
    "PointerEvent",
    "TouchEvent",
    "TouchPoint",
    "WheelEvent",
]
