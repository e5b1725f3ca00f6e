"""
Tile Map Renderer

- Resolves an OGC-style tile matrix set (matrices + per-level limits) into zoom levels
- Maps a viewport (center, zoom, surface size) onto the covering tiles and their URLs
- Composites the tiles onto a numpy/OpenCV surface, one load-and-paint task per tile
- Hosts: CLI (python -m tilemap.cli) and HTTP (uvicorn tilemap.server:app)
"""
from .grid import compute_tiles, tile_range
from .levels import resolve_levels
from .renderer import render
from .templater import expand

__all__ = ["compute_tiles", "tile_range", "resolve_levels", "render", "expand"]
