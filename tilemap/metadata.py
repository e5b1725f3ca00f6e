from __future__ import annotations

"""
Tile metadata client.

Two JSON documents describe a tiled dataset:

  tiles info                         tile matrix set
    links: [{rel, templated, href}]    tileMatrix: [{identifier, resolution,
    tileMatrixSetLinks: [                            tileWidth, tileHeight,
      {tileMatrixSet,                                left, top}, ...]
       tileMatrixSetURI,
       tileMatrixSetLimits: [...]}]

Usage:
    tile_map = load_tile_map(url, "WebMercatorQuad", values={"style": "dark"})
    canvas = Canvas(800, 600)
    tasks = tile_map.render(canvas, Viewport(center=(0.0, 0.0), zoom_index=3), HttpTileLoader())
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import requests

from common.errors import ConfigurationError, TransportError
from common.logging_setup import get_logger
from common.types import Level, TileDescriptor, TileMatrix, TileMatrixLimit, Viewport
from tilemap.grid import compute_tiles
from tilemap.levels import resolve_levels
from tilemap.renderer import render, select_level, viewport_bounds
from tilemap.surface import Canvas, TileLoader
from tilemap.templater import expand, placeholders


log = get_logger(__name__)


def fetch_json(url: str, session: Optional[requests.Session] = None, timeout: float = 10.0) -> Any:
    """GET `url` as JSON; anything but a success status raises TransportError."""
    http = session or requests
    try:
        r = http.get(url, headers={"accept": "application/json"}, timeout=timeout)
    except requests.RequestException as e:
        raise TransportError(url, None, str(e)) from e
    if not r.ok:
        raise TransportError(url, r.status_code)
    try:
        return r.json()
    except ValueError as e:
        raise TransportError(url, r.status_code, "response is not JSON") from e


def get_tile_matrix_set_link(tiles_info: Mapping[str, Any], tile_matrix_set_id: str) -> Dict[str, Any]:
    for link in tiles_info.get("tileMatrixSetLinks", []):
        if link.get("tileMatrixSet") == tile_matrix_set_id:
            return link
    raise ConfigurationError(f"no URL found for {tile_matrix_set_id}")


def get_tile_url_template(tiles_info: Mapping[str, Any]) -> str:
    for link in tiles_info.get("links", []):
        if link.get("rel") == "item" and link.get("templated"):
            return link["href"]
    raise ConfigurationError("no tile URL template found")


@dataclass(frozen=True)
class TileMap:
    """
    A resolved dataset: zoom levels (coarsest first) and the tile URL template
    with dataset-level values already substituted.
    """
    levels: List[Level]
    url_template: str

    def tiles(self, width: int, height: int, viewport: Viewport) -> List[TileDescriptor]:
        level = select_level(self.levels, viewport.zoom_index)
        bounds = viewport_bounds(width, height, viewport.center, level.resolution)
        return compute_tiles(bounds, level, self.url_template)

    def render(self, surface: Canvas, viewport: Viewport, loader: TileLoader) -> List[threading.Thread]:
        return render(surface, viewport.center, viewport.zoom_index, self.levels, self.url_template, loader)


def build_tile_map(
    tiles_info: Mapping[str, Any],
    tile_matrix_set: Mapping[str, Any],
    tile_matrix_set_id: str,
    values: Optional[Mapping[str, Any]] = None,
) -> TileMap:
    """Assemble a TileMap from already fetched documents."""
    template = get_tile_url_template(tiles_info)
    link = get_tile_matrix_set_link(tiles_info, tile_matrix_set_id)

    matrices = [TileMatrix.from_dict(m) for m in tile_matrix_set.get("tileMatrix", [])]
    limits = [TileMatrixLimit.from_dict(lim) for lim in link.get("tileMatrixSetLimits", [])]
    levels = resolve_levels(matrices, limits)

    dataset_values: Dict[str, Any] = dict(values or {})
    dataset_values["tileMatrixSetId"] = tile_matrix_set_id
    url_template = expand(template, dataset_values)

    unresolved = [p for p in placeholders(url_template) if p not in ("tileMatrix", "tileRow", "tileCol")]
    if unresolved:
        log.warning("Tile URL template has unresolved placeholders", extra={"extra": {"names": unresolved}})
    return TileMap(levels=levels, url_template=url_template)


def load_tile_map(
    tiles_info_url: str,
    tile_matrix_set_id: str,
    values: Optional[Mapping[str, Any]] = None,
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> TileMap:
    """
    Fetch both metadata documents and resolve them into a TileMap.
    Raises TransportError / ConfigurationError before any tile work starts.
    """
    tiles_info = fetch_json(tiles_info_url, session=session, timeout=timeout)
    get_tile_url_template(tiles_info)
    link = get_tile_matrix_set_link(tiles_info, tile_matrix_set_id)
    if "tileMatrixSetURI" not in link:
        raise ConfigurationError(f"tile matrix set link {tile_matrix_set_id} has no tileMatrixSetURI")
    tile_matrix_set = fetch_json(link["tileMatrixSetURI"], session=session, timeout=timeout)

    tile_map = build_tile_map(tiles_info, tile_matrix_set, tile_matrix_set_id, values)
    log.info(
        "Tile map loaded",
        extra={"extra": {"tile_matrix_set": tile_matrix_set_id, "levels": len(tile_map.levels)}},
    )
    return tile_map
