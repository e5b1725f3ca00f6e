from __future__ import annotations

import math
from typing import List, Sequence, Tuple

from common.errors import ConfigurationError
from common.types import Bounds, Level, TileDescriptor
from tilemap.templater import expand


def _as_bounds(bounds: Sequence[float]) -> Bounds:
    if len(bounds) != 4:
        raise ConfigurationError(f"bounds must be [min_x, min_y, max_x, max_y], got {list(bounds)!r}")
    min_x, min_y, max_x, max_y = (float(b) for b in bounds)
    if not all(math.isfinite(v) for v in (min_x, min_y, max_x, max_y)):
        raise ConfigurationError(f"bounds must be finite, got {list(bounds)!r}")
    if min_x > max_x or min_y > max_y:
        raise ConfigurationError(f"inverted bounds {list(bounds)!r}")
    return (min_x, min_y, max_x, max_y)


def tile_range(bounds: Sequence[float], level: Level) -> Tuple[int, int, int, int]:
    """
    Tile index window (min_row, min_col, max_row, max_col) covering `bounds`,
    clamped to the level's limit. Rows grow downward from `top`, columns
    rightward from `left`. Rounds outward, so a bound that falls exactly on a
    tile edge also pulls in the neighbouring tile.

    The window is inclusive and may be empty (max < min).
    """
    min_x, min_y, max_x, max_y = _as_bounds(bounds)
    m = level.matrix
    lim = level.limit
    tw = level.map_tile_width
    th = level.map_tile_height

    min_col = max(lim.min_tile_col, math.floor((min_x - m.left) / tw))
    min_row = max(lim.min_tile_row, math.floor((m.top - max_y) / th))
    max_col = min(lim.max_tile_col, math.ceil((max_x - m.left) / tw))
    max_row = min(lim.max_tile_row, math.ceil((m.top - min_y) / th))
    return (min_row, min_col, max_row, max_col)


def compute_tiles(bounds: Sequence[float], level: Level, url_template: str) -> List[TileDescriptor]:
    """
    Enumerate the tiles of `level` that cover `bounds` (map units), row-major.

    Each descriptor carries the tile URL (template expanded with tileMatrix,
    tileRow, tileCol), its native pixel size and its map-space bounds.
    Bounds outside the limit give an empty list.
    """
    min_row, min_col, max_row, max_col = tile_range(bounds, level)
    m = level.matrix
    tw = level.map_tile_width
    th = level.map_tile_height

    tiles: List[TileDescriptor] = []
    for row in range(min_row, max_row + 1):
        tile_top = m.top - row * th
        # edges come from the index, so neighbours share them exactly
        tile_bottom = m.top - (row + 1) * th
        for col in range(min_col, max_col + 1):
            tile_left = m.left + col * tw
            tile_right = m.left + (col + 1) * tw
            values = {"tileMatrix": m.identifier, "tileCol": col, "tileRow": row}
            tiles.append(
                TileDescriptor(
                    url=expand(url_template, values),
                    pixel_width=m.tile_width,
                    pixel_height=m.tile_height,
                    map_bounds=(tile_left, tile_bottom, tile_right, tile_top),
                    row=row,
                    col=col,
                )
            )
    return tiles
