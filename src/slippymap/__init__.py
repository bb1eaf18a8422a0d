"""Interactive slippy-map viewport: projection, gestures, animation and tiles.

The Qt front-end lives in :mod:`slippymap.map_widget` and is imported
separately so the core stays usable without PySide6.
"""

from .core import (
    BoundsChangedEvent,
    ClickEvent,
    GeoPoint,
    MapViewport,
    PixelPoint,
    PointerEvent,
    TouchEvent,
    TouchPoint,
    WheelEvent,
)
from .errors import OptionsValidationError, SlippyMapError, ViewportInvariantError
from .settings import MapOptions

__all__ = [
    "BoundsChangedEvent",
    "ClickEvent",
    "GeoPoint",
    "MapOptions",
    "MapViewport",
    "OptionsValidationError",
    "PixelPoint",
    "PointerEvent",
    "SlippyMapError",
    "TouchEvent",
    "TouchPoint",
    "ViewportInvariantError",
    "WheelEvent",
]
