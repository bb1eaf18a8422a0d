"""Tile collection and positioning for the map renderer."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..config import MAX_STALE_ZOOM_DISTANCE, TILE_SIZE
from .geometry import ScreenRect, TileIndex
from .viewport import TileValues


@dataclass(frozen=True)
class TileDescriptor:
    """One tile image to draw, positioned inside the tile container.

    ``scale`` is the tile's size relative to a native 256px tile; it is
    ``1.0`` for active tiles and a power of two for stale ones.
    """

    index: TileIndex
    rect: ScreenRect
    scale: float
    is_stale: bool

    @property
    def key(self) -> str:
        return self.index.key


@dataclass(frozen=True)
class BoxTransform:
    """Outer box scaled around its top-left corner by ``scale``."""

    width: float
    height: float
    scale: float


@dataclass(frozen=True)
class ContainerTransform:
    """Tile container translated inside the box by ``(left, top)``."""

    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class TileLayout:
    """Everything a renderer needs to place the tiles of one frame.

    ``tiles`` lists stale descriptors first so they end up underneath the
    active ones when drawn in order.
    """

    values: TileValues
    box: BoxTransform
    container: ContainerTransform
    tiles: list[TileDescriptor] = field(default_factory=list)

    @property
    def active_tiles(self) -> list[TileDescriptor]:
        return [tile for tile in self.tiles if not tile.is_stale]

    @property
    def stale_tiles(self) -> list[TileDescriptor]:
        return [tile for tile in self.tiles if tile.is_stale]

    def to_screen(self, rect: ScreenRect) -> ScreenRect:
        """Map a container-relative *rect* into viewport pixels."""

        scale = self.box.scale
        return ScreenRect(
            (self.container.left + rect.left) * scale,
            (self.container.top + rect.top) * scale,
            rect.width * scale,
            rect.height * scale,
        )

    def fetch_order(self) -> list[TileDescriptor]:
        """Return active tiles sorted by distance to the viewport centre."""

        center_x = self.box.width / 2.0
        center_y = self.box.height / 2.0

        def distance_sq(tile: TileDescriptor) -> float:
            tile_center = tile.rect.center
            dx = self.container.left + tile_center.x - center_x
            dy = self.container.top + tile_center.y - center_y
            return dx * dx + dy * dy

        return sorted(self.active_tiles, key=distance_sq)


def collect_stale_tiles(values: TileValues, stale_values: Iterable[TileValues]) -> list[TileDescriptor]:
    """Map tiles of previous rounded zoom levels into the current container."""

    tiles: list[TileDescriptor] = []
    for old in stale_values:
        zoom_diff = old.rounded_zoom - values.rounded_zoom
        if zoom_diff == 0 or abs(zoom_diff) > MAX_STALE_ZOOM_DISTANCE:
            continue

        ratio = 1.0 / (2 ** zoom_diff)
        x_offset = -(values.tile_min_x - old.tile_min_x * ratio) * TILE_SIZE
        y_offset = -(values.tile_min_y - old.tile_min_y * ratio) * TILE_SIZE
        size = TILE_SIZE * ratio

        min_x, max_x, min_y, max_y = old.clipped_range()
        for x in range(min_x, max_x + 1):
            for y in range(min_y, max_y + 1):
                tiles.append(
                    TileDescriptor(
                        index=TileIndex(x, y, old.rounded_zoom),
                        rect=ScreenRect(
                            x_offset + (x - old.tile_min_x) * size,
                            y_offset + (y - old.tile_min_y) * size,
                            size,
                            size,
                        ),
                        scale=ratio,
                        is_stale=True,
                    )
                )
    return tiles


def collect_tiles(values: TileValues) -> list[TileDescriptor]:
    """Return descriptors for every existing tile in the covering block."""

    min_x, max_x, min_y, max_y = values.clipped_range()
    return [
        TileDescriptor(
            index=TileIndex(x, y, values.rounded_zoom),
            rect=ScreenRect(
                (x - values.tile_min_x) * TILE_SIZE,
                (y - values.tile_min_y) * TILE_SIZE,
                TILE_SIZE,
                TILE_SIZE,
            ),
            scale=1.0,
            is_stale=False,
        )
        for x in range(min_x, max_x + 1)
        for y in range(min_y, max_y + 1)
    ]


def layout_tiles(values: TileValues, stale_values: Iterable[TileValues] = ()) -> TileLayout:
    """Assemble the full :class:`TileLayout` for *values*."""

    box = BoxTransform(width=values.scale_width, height=values.scale_height, scale=values.scale)
    container = ContainerTransform(
        left=-((values.tile_center_x - values.tile_min_x) * TILE_SIZE - values.scale_width / 2.0),
        top=-((values.tile_center_y - values.tile_min_y) * TILE_SIZE - values.scale_height / 2.0),
        width=(values.tile_max_x - values.tile_min_x + 1) * TILE_SIZE,
        height=(values.tile_max_y - values.tile_min_y + 1) * TILE_SIZE,
    )
    tiles = collect_stale_tiles(values, stale_values)
    tiles.extend(collect_tiles(values))
    return TileLayout(values=values, box=box, container=container, tiles=tiles)


__all__ = [
    "BoxTransform",
    "ContainerTransform",
    "TileDescriptor",
    "TileLayout",
    "collect_stale_tiles",
    "collect_tiles",
    "layout_tiles",
]
