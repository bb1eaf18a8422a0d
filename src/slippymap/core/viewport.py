"""Viewport state snapshots and the covering tile box derived from them."""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..config import TILE_SIZE
from .geometry import GeoPoint, PixelPoint
from .projection import lat_to_tile_y, lng_to_tile_x


def round_zoom(zoom: float) -> int:
    """Round *zoom* to the nearest level, halves rounding up."""

    return math.floor(zoom + 0.5)


@dataclass(frozen=True)
class ViewportState:
    """Immutable snapshot of the camera published by the viewport.

    ``pixel_delta`` and ``zoom_delta`` describe an in-progress gesture that
    has not been folded into ``center``/``zoom`` yet.
    """

    center: GeoPoint
    zoom: float
    width: float
    height: float
    pixel_delta: PixelPoint | None = None
    zoom_delta: float = 0.0

    @property
    def effective_zoom(self) -> float:
        return self.zoom + self.zoom_delta

    @property
    def has_size(self) -> bool:
        return self.width > 0 and self.height > 0


@dataclass(frozen=True)
class TileValues:
    """Describe the block of tiles covering the viewport at the rounded zoom.

    The tile range is *not* clipped to the valid tile numbers so that stale
    layouts keep their original origin; clipping happens when descriptors are
    emitted.
    """

    tile_min_x: int
    tile_max_x: int
    tile_min_y: int
    tile_max_y: int
    tile_center_x: float
    tile_center_y: float
    rounded_zoom: int
    zoom_delta: float
    scale_width: float
    scale_height: float
    scale: float

    def clipped_range(self) -> tuple[int, int, int, int]:
        """Return ``(min_x, max_x, min_y, max_y)`` limited to existing tiles."""

        last = (1 << self.rounded_zoom) - 1 if self.rounded_zoom >= 0 else 0
        return (
            max(self.tile_min_x, 0),
            min(self.tile_max_x, last),
            max(self.tile_min_y, 0),
            min(self.tile_max_y, last),
        )

    def tile_keys(self) -> list[str]:
        """Return the ``x-y-z`` keys of every existing tile in the range."""

        min_x, max_x, min_y, max_y = self.clipped_range()
        return [
            f"{x}-{y}-{self.rounded_zoom}"
            for x in range(min_x, max_x + 1)
            for y in range(min_y, max_y + 1)
        ]


def compute_tile_values(
    center: GeoPoint,
    zoom: float,
    width: float,
    height: float,
    pixel_delta: PixelPoint | None = None,
    zoom_delta: float = 0.0,
) -> TileValues:
    """Translate camera parameters into the covering tile block."""

    zoom_delta = zoom_delta or 0.0
    rounded_zoom = round_zoom(zoom + zoom_delta)
    zoom_diff = zoom + zoom_delta - rounded_zoom

    # Tiles are fetched at the rounded level and the whole block is scaled by
    # ``scale`` so fractional zoom levels render without re-fetching.
    scale = 2 ** zoom_diff
    scale_width = width / scale
    scale_height = height / scale

    tile_center_x = lng_to_tile_x(center.lng, rounded_zoom)
    tile_center_y = lat_to_tile_y(center.lat, rounded_zoom)
    if pixel_delta is not None:
        tile_center_x -= pixel_delta.x / TILE_SIZE / scale
        tile_center_y -= pixel_delta.y / TILE_SIZE / scale

    half_width = scale_width / 2.0 / TILE_SIZE
    half_height = scale_height / 2.0 / TILE_SIZE

    return TileValues(
        tile_min_x=math.floor(tile_center_x - half_width),
        tile_max_x=math.floor(tile_center_x + half_width),
        tile_min_y=math.floor(tile_center_y - half_height),
        tile_max_y=math.floor(tile_center_y + half_height),
        tile_center_x=tile_center_x,
        tile_center_y=tile_center_y,
        rounded_zoom=rounded_zoom,
        zoom_delta=zoom_delta,
        scale_width=scale_width,
        scale_height=scale_height,
        scale=scale,
    )


def compute_state_tile_values(state: ViewportState) -> TileValues:
    """Shortcut for :func:`compute_tile_values` on a :class:`ViewportState`."""

    return compute_tile_values(
        state.center,
        state.zoom,
        state.width,
        state.height,
        state.pixel_delta,
        state.zoom_delta,
    )


__all__ = [
    "TileValues",
    "ViewportState",
    "compute_state_tile_values",
    "compute_tile_values",
    "round_zoom",
]
