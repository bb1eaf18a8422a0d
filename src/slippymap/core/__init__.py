"""Toolkit-independent viewport core.

Everything here runs without a GUI toolkit; hosts translate their native
events into :mod:`slippymap.core.events` values and drive
:class:`MapViewport` with a frame clock.
"""

from .animator import AnimationController, AnimationSpec, ease_out_quad
from .bounds import BoundsLimiter, BoundsPolicy
from .controller import BoundsChangedEvent, MapViewport
from .events import ClickEvent, PointerEvent, TouchEvent, TouchPoint, WheelEvent
from .geometry import Bounds, GeoPoint, MinMax, PixelPoint, ScreenRect, TileIndex
from .input_handler import GestureInterpreter
from .tile_collector import TileDescriptor, TileLayout, layout_tiles
from .tile_manager import TileLoadTracker
from .viewport import TileValues, ViewportState, compute_tile_values, round_zoom

__all__ = [
    "AnimationController",
    "AnimationSpec",
    "Bounds",
    "BoundsChangedEvent",
    "BoundsLimiter",
    "BoundsPolicy",
    "ClickEvent",
    "GeoPoint",
    "GestureInterpreter",
    "MapViewport",
    "MinMax",
    "PixelPoint",
    "PointerEvent",
    "ScreenRect",
    "TileDescriptor",
    "TileIndex",
    "TileLayout",
    "TileLoadTracker",
    "TileValues",
    "TouchEvent",
    "TouchPoint",
    "ViewportState",
    "WheelEvent",
    "compute_tile_values",
    "ease_out_quad",
    "layout_tiles",
    "round_zoom",
]
