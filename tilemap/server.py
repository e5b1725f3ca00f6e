from __future__ import annotations

"""
HTTP front end: renders map views on request.

Endpoints:
  GET /health
  GET /levels                              zoom levels, coarsest first
  GET /tiles?x&y&zoom&width&height         tile descriptors for a view (JSON)
  GET /render?x&y&zoom&width&height        the composited view (PNG)

Run:
  uvicorn tilemap.server:app --port 8000
"""

import threading
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse, Response

from common.errors import ConfigurationError, TransportError
from common.logging_setup import get_logger, setup_logging
from common.types import Viewport
from tilemap.config import load_config, parse_values
from tilemap.metadata import TileMap, load_tile_map
from tilemap.renderer import wait_for
from tilemap.surface import Canvas, HttpTileLoader, TileLoader


log = get_logger("tilemap.server")

MAX_SIZE = 4096


def create_app(
    tile_map: Optional[TileMap] = None,
    loader: Optional[TileLoader] = None,
    config: Optional[Dict[str, Any]] = None,
) -> FastAPI:
    """
    Build the app. Without an explicit `tile_map` the metadata is fetched on
    the first request that needs it, using the `tiles` section of `config`.
    """
    P = config or load_config()
    timeout = float(P["http"].get("timeout", 10.0))
    state: Dict[str, Any] = {"tile_map": tile_map, "loader": loader or HttpTileLoader(timeout=timeout)}
    lock = threading.Lock()

    def _tile_map() -> TileMap:
        with lock:
            if state["tile_map"] is None:
                tiles_cfg = P["tiles"]
                if not tiles_cfg.get("info_url"):
                    raise ConfigurationError("tiles.info_url is not configured")
                state["tile_map"] = load_tile_map(
                    tiles_cfg["info_url"],
                    tiles_cfg["tile_matrix_set"],
                    parse_values(tiles_cfg.get("values")),
                    timeout=timeout,
                )
            return state["tile_map"]

    app = FastAPI(title="Tile Map Renderer", version="0.1.0")

    @app.exception_handler(ConfigurationError)
    async def _config_error(request, exc: ConfigurationError):
        return JSONResponse({"error": "configuration", "detail": str(exc)}, status_code=400)

    @app.exception_handler(TransportError)
    async def _transport_error(request, exc: TransportError):
        log.error("Metadata fetch failed: %s", exc)
        return JSONResponse(
            {"error": "transport", "detail": str(exc), "url": exc.url, "status": exc.status}, status_code=502
        )

    def _check_size(width: int, height: int) -> None:
        if not (0 < width <= MAX_SIZE and 0 < height <= MAX_SIZE):
            raise HTTPException(status_code=400, detail=f"width/height must be in 1..{MAX_SIZE}")

    @app.get("/health")
    def health():
        tm = state["tile_map"]
        return {"status": "ok", "loaded": tm is not None, "levels": len(tm.levels) if tm else 0}

    @app.get("/levels")
    def levels():
        tm = _tile_map()
        return {"levels": [dict(lv.to_dict(), zoom=i) for i, lv in enumerate(tm.levels)]}

    @app.get("/tiles")
    def tiles(
        x: float = Query(...),
        y: float = Query(...),
        zoom: int = Query(0),
        width: int = Query(800),
        height: int = Query(600),
    ):
        _check_size(width, height)
        tm = _tile_map()
        found = tm.tiles(width, height, Viewport(center=(x, y), zoom_index=zoom))
        return {"count": len(found), "tiles": [t.to_dict() for t in found]}

    @app.get("/render")
    def render_view(
        x: float = Query(...),
        y: float = Query(...),
        zoom: int = Query(0),
        width: int = Query(800),
        height: int = Query(600),
    ):
        _check_size(width, height)
        tm = _tile_map()
        canvas = Canvas(width, height)
        tasks = tm.render(canvas, Viewport(center=(x, y), zoom_index=zoom), state["loader"])
        pending = wait_for(tasks, timeout)
        headers = {"Cache-Control": "no-store", "X-Tiles": str(len(tasks)), "X-Tiles-Pending": str(pending)}
        return Response(content=canvas.encode_png(), media_type="image/png", headers=headers)

    return app


app = create_app()


# -------- local dev entrypoint --------
if __name__ == "__main__":
    setup_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000)
