"""Tile address providers used by renderers to fetch tile images."""

from __future__ import annotations

from collections.abc import Callable, Sequence

TileProvider = Callable[[int, int, int, "float | None"], str]
"""``(x, y, z, dpr) -> url`` for one tile."""

WIKIMEDIA_URL = "https://maps.wikimedia.org/osm-intl/{z}/{x}/{y}{retina}.png"


def wikimedia(x: int, y: int, z: int, dpr: float | None = None) -> str:
    """Return the Wikimedia OSM tile URL, using ``@2x`` images for dense displays."""

    retina = dpr is not None and dpr >= 2
    return WIKIMEDIA_URL.format(x=x, y=y, z=z, retina="@2x" if retina else "")


def src_set(dprs: Sequence[float], provider: TileProvider, x: int, y: int, z: int) -> str:
    """Build an HTML ``srcset`` value listing one URL per device pixel ratio.

    An empty *dprs* sequence yields an empty string.
    """

    if not dprs:
        return ""
    entries = []
    for dpr in dprs:
        url = provider(x, y, z, dpr)
        entries.append(url if dpr == 1 else f"{url} {_format_ratio(dpr)}x")
    return ", ".join(entries)


def _format_ratio(dpr: float) -> str:
    return str(int(dpr)) if float(dpr).is_integer() else str(dpr)


__all__ = ["TileProvider", "WIKIMEDIA_URL", "src_set", "wikimedia"]
