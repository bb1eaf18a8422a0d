"""Clamp the camera centre to the geographic range allowed by a bounds policy."""

from __future__ import annotations

import enum
import math

from ..config import TILE_SIZE
from .geometry import GeoPoint, MinMax
from .projection import ABSOLUTE_MIN_MAX, tile_x_to_lng, tile_y_to_lat


class BoundsPolicy(str, enum.Enum):
    """Which part of the viewport must stay inside the world."""

    CENTER = "center"
    EDGE = "edge"


class BoundsLimiter:
    """Compute and apply the allowed centre range for a bounds policy.

    With :attr:`BoundsPolicy.CENTER` the centre may roam over the whole
    Mercator extent. With :attr:`BoundsPolicy.EDGE` the range shrinks by half
    a viewport on every side so the visible edge never leaves the world. An axis
    on which the viewport is larger than the world keeps the Mercator extent,
    and one that exactly matches it pins the centre to 0. The last edge range
    is cached by ``(zoom, width, height)``.
    """

    def __init__(self, policy: BoundsPolicy | str = BoundsPolicy.CENTER) -> None:
        self._policy = BoundsPolicy(policy)
        self._cache: tuple[float, float, float, MinMax] | None = None

    @property
    def policy(self) -> BoundsPolicy:
        return self._policy

    # ------------------------------------------------------------------
    def min_max(self, zoom: float, width: float, height: float) -> MinMax:
        """Return the allowed centre range at *zoom* for a viewport size."""

        if self._policy is BoundsPolicy.CENTER:
            return ABSOLUTE_MIN_MAX

        cached = self._cache
        if cached is not None and cached[:3] == (zoom, width, height):
            return cached[3]

        tiles_across = 2 ** zoom
        pixels_at_zoom = tiles_across * TILE_SIZE
        # Half a viewport expressed in tiles is ``size / 2 / 256``.
        half_width_tiles = width / (2 * TILE_SIZE)
        half_height_tiles = height / (2 * TILE_SIZE)

        # A viewport wider than the world may show any longitude.
        if width > pixels_at_zoom:
            min_lng, max_lng = ABSOLUTE_MIN_MAX.min_lng, ABSOLUTE_MIN_MAX.max_lng
        else:
            min_lng = tile_x_to_lng(half_width_tiles, zoom)
            max_lng = tile_x_to_lng(tiles_across - half_width_tiles, zoom)

        if height > pixels_at_zoom:
            min_lat, max_lat = ABSOLUTE_MIN_MAX.min_lat, ABSOLUTE_MIN_MAX.max_lat
        else:
            min_lat = tile_y_to_lat(tiles_across - half_height_tiles, zoom)
            max_lat = tile_y_to_lat(half_height_tiles, zoom)

        min_max = MinMax(min_lat=min_lat, max_lat=max_lat, min_lng=min_lng, max_lng=max_lng)
        self._cache = (zoom, width, height, min_max)
        return min_max

    # ------------------------------------------------------------------
    def limit_center(
        self,
        candidate: GeoPoint,
        zoom: float,
        width: float,
        height: float,
        fallback: GeoPoint,
    ) -> GeoPoint:
        """Clamp each axis of *candidate*; NaN axes fall back to *fallback*."""

        min_max = self.min_max(zoom, width, height)
        lat = fallback.lat if math.isnan(candidate.lat) else candidate.lat
        lng = fallback.lng if math.isnan(candidate.lng) else candidate.lng

        lat = max(min(lat, min_max.max_lat), min_max.min_lat)
        lng = max(min(lng, min_max.max_lng), min_max.min_lng)
        return GeoPoint(lat, lng)


__all__ = ["BoundsLimiter", "BoundsPolicy"]
