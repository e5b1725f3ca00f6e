from __future__ import annotations

import threading
import time
from typing import List, Sequence, Tuple

from common.errors import ConfigurationError, TileLoadError
from common.logging_setup import get_logger
from common.types import Bounds, Level, TileDescriptor
from tilemap.grid import compute_tiles
from tilemap.surface import Canvas, TileLoader


log = get_logger(__name__)


def viewport_bounds(width: float, height: float, center: Sequence[float], resolution: float) -> Bounds:
    """Map-space box seen by a width x height surface centered on `center`."""
    half_w = (width / 2.0) * resolution
    half_h = (height / 2.0) * resolution
    cx, cy = float(center[0]), float(center[1])
    return (cx - half_w, cy - half_h, cx + half_w, cy + half_h)


def tile_offset(
    tile: TileDescriptor, width: float, height: float, center: Sequence[float], resolution: float
) -> Tuple[float, float]:
    """Surface pixel (dx, dy) of the tile's top-left corner."""
    min_x, _, _, max_y = tile.map_bounds
    dx = width / 2.0 + (min_x - float(center[0])) / resolution
    dy = height / 2.0 - (max_y - float(center[1])) / resolution
    return dx, dy


def _paint_tile(surface: Canvas, loader: TileLoader, url: str, dx: float, dy: float) -> None:
    try:
        image = loader.load(url)
    except TileLoadError as e:
        # region stays unpainted
        log.debug("Tile load failed", extra={"extra": {"url": e.url, "reason": e.reason}})
        return
    surface.draw_image(image, dx, dy)


def select_level(levels: Sequence[Level], zoom_index: int) -> Level:
    if not 0 <= zoom_index < len(levels):
        raise ConfigurationError(f"zoom index {zoom_index} out of range (0..{len(levels) - 1})")
    return levels[zoom_index]


def render(
    surface: Canvas,
    center: Sequence[float],
    zoom_index: int,
    levels: Sequence[Level],
    url_template: str,
    loader: TileLoader,
) -> List[threading.Thread]:
    """
    Draw the tiles visible around `center` at `levels[zoom_index]` onto `surface`.

    Every tile is loaded and painted by its own daemon thread; nothing here
    waits for them and paint order is whatever order the loads finish in.
    The started threads are returned so a host that needs the finished image
    can join them.
    """
    level = select_level(levels, zoom_index)
    res = level.resolution

    bounds = viewport_bounds(surface.width, surface.height, center, res)
    tiles = compute_tiles(bounds, level, url_template)
    log.info(
        "Rendering view",
        extra={"extra": {"level": level.identifier, "zoom": zoom_index, "tiles": len(tiles), "bounds": bounds}},
    )

    tasks: List[threading.Thread] = []
    for tile in tiles:
        dx, dy = tile_offset(tile, surface.width, surface.height, center, res)
        t = threading.Thread(
            target=_paint_tile,
            args=(surface, loader, tile.url, dx, dy),
            name=f"tile-{level.identifier}-{tile.row}-{tile.col}",
            daemon=True,
        )
        t.start()
        tasks.append(t)
    return tasks


def wait_for(tasks: Sequence[threading.Thread], timeout: float) -> int:
    """
    Join render tasks for at most `timeout` seconds in total; returns how many
    are still running. For hosts that persist the surface (file, HTTP body).
    """
    deadline = time.monotonic() + timeout
    for t in tasks:
        t.join(max(0.0, deadline - time.monotonic()))
    return sum(1 for t in tasks if t.is_alive())
