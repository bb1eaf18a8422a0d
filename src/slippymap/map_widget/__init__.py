"""Qt front-end for the viewport core.

Importing this package requires PySide6; :mod:`slippymap.core` does not.
"""

from .map_widget import TILE_MISSING, MapWidget, TileLoader

__all__ = ["MapWidget", "TILE_MISSING", "TileLoader"]
