from __future__ import annotations

"""
Render a map view to a PNG file.

Examples:
  python -m tilemap.cli --tiles https://maps.example.com/collections/dem/tiles \
      --tile-matrix-set WebMercatorQuad --center 1113194.9,6800125.4 --zoom 6 \
      --values "style=hillshade&f=png" --size 1024x768 --out view.png

  # everything from config/params.yaml
  python -m tilemap.cli --config config/params.yaml
"""

import argparse
import sys
from typing import Any, List, Mapping, Optional

from common.errors import ConfigurationError, TransportError
from common.logging_setup import get_logger, setup_logging
from common.types import Viewport
from tilemap.config import load_config, parse_center, parse_size, parse_values, parse_zoom
from tilemap.metadata import load_tile_map
from tilemap.renderer import wait_for
from tilemap.surface import Canvas, HttpTileLoader


log = get_logger("tilemap.cli")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Render a region of a tiled map to PNG")
    ap.add_argument("--config", default="config/params.yaml")
    ap.add_argument("--tiles", help="Tiles info document URL")
    ap.add_argument("--tile-matrix-set", help="Tile matrix set identifier")
    ap.add_argument("--center", help="View center x,y in map units")
    ap.add_argument("--zoom", help="Zoom index (0 = coarsest level)")
    ap.add_argument("--values", help="Extra template values, e.g. 'style=dark&f=png'")
    ap.add_argument("--size", help="Output size WxH")
    ap.add_argument("--out", help="Output PNG path")
    ap.add_argument("--timeout", type=float, default=None, help="HTTP timeout and tile wait (s)")
    return ap


def _section(P: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = P.get(name) or {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"config section {name!r} must be a mapping")
    return value


def _timeout(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"timeout must be a number, got {value!r}") from e


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        P = load_config(args.config)
        setup_logging(_section(P, "logging").get("level", "INFO"), force=True)

        tiles_cfg = _section(P, "tiles")
        view_cfg = _section(P, "view")
        timeout = _timeout(args.timeout if args.timeout is not None else _section(P, "http").get("timeout", 10.0))
        out_path = args.out or _section(P, "output").get("path") or "map.png"

        info_url = args.tiles or tiles_cfg.get("info_url")
        if not info_url:
            raise ConfigurationError("no tiles info URL given (--tiles or tiles.info_url)")
        tms_id = args.tile_matrix_set or tiles_cfg.get("tile_matrix_set")
        if not tms_id:
            raise ConfigurationError("no tile matrix set given (--tile-matrix-set or tiles.tile_matrix_set)")
        values = parse_values(args.values if args.values is not None else tiles_cfg.get("values"))
        center = parse_center(args.center or view_cfg.get("center", "0,0"))
        zoom = parse_zoom(args.zoom if args.zoom is not None else view_cfg.get("zoom", 0))
        width, height = parse_size(args.size or view_cfg.get("size", "800x600"))

        # metadata and tiles share the loader's pooled session
        loader = HttpTileLoader(timeout=timeout)
        tile_map = load_tile_map(info_url, tms_id, values, session=loader.session, timeout=timeout)
        canvas = Canvas(width, height)
        tasks = tile_map.render(canvas, Viewport(center=center, zoom_index=zoom), loader)
    except (ConfigurationError, TransportError) as e:
        log.error("Render setup failed: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return 2

    pending = wait_for(tasks, timeout)
    if pending:
        log.warning("Tiles still loading at write time", extra={"extra": {"pending": pending}})
    canvas.save(out_path)
    log.info("Wrote map", extra={"extra": {"path": str(out_path), "tiles": len(tasks)}})
    return 0


if __name__ == "__main__":
    sys.exit(main())
