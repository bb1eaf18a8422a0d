"""Value types shared by the projection, layout and gesture modules."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    """A geographic coordinate in degrees."""

    lat: float
    lng: float


@dataclass(frozen=True)
class PixelPoint:
    """A floating point screen offset, origin at the container's top-left."""

    x: float
    y: float

    def __add__(self, other: "PixelPoint") -> "PixelPoint":
        return PixelPoint(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "PixelPoint") -> "PixelPoint":
        return PixelPoint(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> "PixelPoint":
        return PixelPoint(self.x * factor, self.y * factor)

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    @staticmethod
    def midpoint(first: "PixelPoint", second: "PixelPoint") -> "PixelPoint":
        return PixelPoint((first.x + second.x) / 2.0, (first.y + second.y) / 2.0)


@dataclass(frozen=True)
class TileIndex:
    """Address of a 256px tile in the slippy-map scheme."""

    x: int
    y: int
    z: int

    @property
    def key(self) -> str:
        """Return the ``x-y-z`` string used by the load tracker."""

        return f"{self.x}-{self.y}-{self.z}"


@dataclass(frozen=True)
class ScreenRect:
    """An axis-aligned rectangle in container pixels."""

    left: float
    top: float
    width: float
    height: float

    @property
    def center(self) -> PixelPoint:
        return PixelPoint(self.left + self.width / 2.0, self.top + self.height / 2.0)


@dataclass(frozen=True)
class MinMax:
    """Allowed centre range in degrees, inclusive on both ends."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float


@dataclass(frozen=True)
class Bounds:
    """Geographic extent of the visible viewport."""

    ne: GeoPoint
    sw: GeoPoint


__all__ = ["Bounds", "GeoPoint", "MinMax", "PixelPoint", "ScreenRect", "TileIndex"]
