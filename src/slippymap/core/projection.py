"""Spherical Mercator helpers for converting between degrees, tiles and pixels.

Two coordinate spaces are used throughout the package:

* *world pixels*: the whole Web Mercator square measures ``256 * 2**zoom``
  pixels on each side with the origin at the north-west corner; and
* *fractional tiles*: world pixels divided by the tile size, i.e. the
  slippy-map tile numbering with a fractional part.

Inputs are expected to be pre-validated by callers, so none of the functions
raise for out-of-range values.
"""

from __future__ import annotations

import math

from ..config import EARTH_RADIUS_M, MAX_LATITUDE, TILE_SIZE
from .geometry import GeoPoint, MinMax, PixelPoint

# The absolute extent the centre of the map may ever reach. The latitude
# bound equals the Mercator limit so clamping never yields a value outside it.
ABSOLUTE_MIN_MAX = MinMax(
    min_lat=-MAX_LATITUDE,
    max_lat=MAX_LATITUDE,
    min_lng=-180.0,
    max_lng=180.0,
)


def world_size(zoom: float) -> float:
    """Return the width of the projected world in pixels at *zoom*."""

    return TILE_SIZE * (2 ** zoom)


# ---------------------------------------------------------------------------
# Fractional tile conversions
# ---------------------------------------------------------------------------

def lng_to_tile_x(lng: float, zoom: float) -> float:
    return (lng + 180.0) / 360.0 * (2 ** zoom)


def lat_to_tile_y(lat: float, zoom: float) -> float:
    lat_rad = math.radians(lat)
    return (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0 * (2 ** zoom)


def tile_x_to_lng(x: float, zoom: float) -> float:
    return x / (2 ** zoom) * 360.0 - 180.0


def tile_y_to_lat(y: float, zoom: float) -> float:
    n = math.pi - 2.0 * math.pi * y / (2 ** zoom)
    return math.degrees(math.atan(math.sinh(n)))


# ---------------------------------------------------------------------------
# World pixel conversions
# ---------------------------------------------------------------------------

_TRANSFORM_SCALE = 0.5 / (math.pi * EARTH_RADIUS_M)


def project(point: GeoPoint, zoom: float) -> PixelPoint:
    """Project *point* into world pixels at *zoom*."""

    lat = max(min(MAX_LATITUDE, point.lat), -MAX_LATITUDE)
    sin_lat = math.sin(math.radians(lat))
    meters_x = EARTH_RADIUS_M * math.radians(point.lng)
    meters_y = EARTH_RADIUS_M * math.log((1.0 + sin_lat) / (1.0 - sin_lat)) / 2.0

    scale = world_size(zoom)
    return PixelPoint(
        scale * (_TRANSFORM_SCALE * meters_x + 0.5),
        scale * (-_TRANSFORM_SCALE * meters_y + 0.5),
    )


def unproject(pixel: PixelPoint, zoom: float) -> GeoPoint:
    """Return the geographic coordinate at world pixel *pixel*."""

    scale = world_size(zoom)
    meters_x = (pixel.x / scale - 0.5) / _TRANSFORM_SCALE
    meters_y = (pixel.y / scale - 0.5) / -_TRANSFORM_SCALE
    return GeoPoint(
        math.degrees(2.0 * math.atan(math.exp(meters_y / EARTH_RADIUS_M)) - math.pi / 2.0),
        math.degrees(meters_x / EARTH_RADIUS_M),
    )


# ---------------------------------------------------------------------------
# Screen conversions
# ---------------------------------------------------------------------------

def lat_lng_to_pixel(
    point: GeoPoint,
    center: GeoPoint,
    zoom: float,
    width: float,
    height: float,
    pixel_delta: PixelPoint | None = None,
) -> PixelPoint:
    """Return the container pixel of *point* with *center* at the midpoint."""

    delta_x = pixel_delta.x if pixel_delta is not None else 0.0
    delta_y = pixel_delta.y if pixel_delta is not None else 0.0

    tile_center_x = lng_to_tile_x(center.lng, zoom)
    tile_center_y = lat_to_tile_y(center.lat, zoom)
    tile_x = lng_to_tile_x(point.lng, zoom)
    tile_y = lat_to_tile_y(point.lat, zoom)

    return PixelPoint(
        (tile_x - tile_center_x) * TILE_SIZE + width / 2.0 + delta_x,
        (tile_y - tile_center_y) * TILE_SIZE + height / 2.0 + delta_y,
    )


def pixel_to_lat_lng(
    pixel: PixelPoint,
    center: GeoPoint,
    zoom: float,
    width: float,
    height: float,
    pixel_delta: PixelPoint | None = None,
) -> GeoPoint:
    """Inverse of :func:`lat_lng_to_pixel`, clamped to :data:`ABSOLUTE_MIN_MAX`."""

    delta_x = pixel_delta.x if pixel_delta is not None else 0.0
    delta_y = pixel_delta.y if pixel_delta is not None else 0.0

    tile_x = lng_to_tile_x(center.lng, zoom) + (pixel.x - width / 2.0 - delta_x) / TILE_SIZE
    tile_y = lat_to_tile_y(center.lat, zoom) + (pixel.y - height / 2.0 - delta_y) / TILE_SIZE

    bounds = ABSOLUTE_MIN_MAX
    return GeoPoint(
        max(bounds.min_lat, min(bounds.max_lat, tile_y_to_lat(tile_y, zoom))),
        max(bounds.min_lng, min(bounds.max_lng, tile_x_to_lng(tile_x, zoom))),
    )


__all__ = [
    "ABSOLUTE_MIN_MAX",
    "lat_lng_to_pixel",
    "lat_to_tile_y",
    "lng_to_tile_x",
    "pixel_to_lat_lng",
    "project",
    "tile_x_to_lng",
    "tile_y_to_lat",
    "unproject",
    "world_size",
]
