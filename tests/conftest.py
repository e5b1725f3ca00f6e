"""Shared fixtures: a small two-level tile matrix set and in-memory HTTP."""

import os
import sys
from typing import Dict, Tuple
from unittest.mock import Mock

import cv2
import numpy as np
import pytest

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(project_root)

from common.errors import TileLoadError
from common.types import Level, TileMatrix, TileMatrixLimit


TILES_INFO_URL = "https://tiles.example.com/collections/demo/tiles"
TMS_URL = "https://tiles.example.com/tileMatrixSets/Grid"
TEMPLATE = "https://tiles.example.com/{tileMatrixSetId}/{tileMatrix}/{tileRow}/{tileCol}.png?style={style}"


def tile_color(row: int, col: int) -> Tuple[int, int, int]:
    """Distinct BGR color per tile so tests can tell which tile painted a pixel."""
    return (40 + 60 * col, 40 + 60 * row, 200)


@pytest.fixture
def tiles_info() -> Dict:
    return {
        "links": [
            {"rel": "self", "href": TILES_INFO_URL},
            {"rel": "item", "templated": False, "href": "https://tiles.example.com/static.png"},
            {"rel": "item", "templated": True, "href": TEMPLATE},
        ],
        "tileMatrixSetLinks": [
            # listed without a URI, so it cannot be fetched
            {"tileMatrixSet": "Other"},
            {
                "tileMatrixSet": "Grid",
                "tileMatrixSetURI": TMS_URL,
                "tileMatrixSetLimits": [
                    {"tileMatrix": "1", "minTileRow": 0, "maxTileRow": 3, "minTileCol": 0, "maxTileCol": 3},
                    {"tileMatrix": "0", "minTileRow": 0, "maxTileRow": 1, "minTileCol": 0, "maxTileCol": 1},
                ],
            },
        ],
    }


@pytest.fixture
def tile_matrix_set() -> Dict:
    return {
        "tileMatrix": [
            {"identifier": "0", "resolution": 2, "tileWidth": 256, "tileHeight": 256, "left": 0, "top": 0},
            {"identifier": "1", "resolution": 1, "tileWidth": 256, "tileHeight": 256, "left": 0, "top": 0},
            {"identifier": "2", "resolution": 0.5, "tileWidth": 256, "tileHeight": 256, "left": 0, "top": 0},
        ]
    }


@pytest.fixture
def level() -> Level:
    """Resolution 2, 256px tiles (512 map units), origin (0, 0), rows/cols 0..1."""
    return Level(
        matrix=TileMatrix(identifier="0", resolution=2.0, tile_width=256, tile_height=256, left=0.0, top=0.0),
        limit=TileMatrixLimit(tile_matrix="0", min_tile_row=0, max_tile_row=1, min_tile_col=0, max_tile_col=1),
    )


class SolidLoader:
    """
    Tile loader returning a solid image per URL.
    URLs are expected to end in '{row}-{col}'; URLs in `fail` raise TileLoadError.
    """

    def __init__(self, size: int = 256, fail=()):
        self.size = size
        self.fail = set(fail)
        self.calls = []

    def load(self, url: str) -> np.ndarray:
        self.calls.append(url)
        if url in self.fail:
            raise TileLoadError(url, "status 404")
        row, col = (int(v) for v in url.rsplit("/", 1)[-1].split("-"))
        return np.full((self.size, self.size, 3), tile_color(row, col), dtype=np.uint8)


def png_bytes(color, size: int = 256) -> bytes:
    ok, buf = cv2.imencode(".png", np.full((size, size, 3), color, dtype=np.uint8))
    assert ok
    return buf.tobytes()


def _response(status: int, *, json_doc=None, content: bytes = b"") -> Mock:
    r = Mock()
    r.status_code = status
    r.ok = 200 <= status < 400
    r.content = content
    r.text = content.decode("latin-1")[:200]
    r.json = Mock(return_value=json_doc)
    return r


class FakeSession:
    """
    Stands in for requests.Session: serves the metadata documents as JSON and
    answers tile URLs of the 'Grid' set with PNG bytes colored by tile_color().
    Tile (row, col) pairs in `missing` get a 404.
    """

    def __init__(self, documents: Dict[str, Dict], missing=()):
        self.documents = documents
        self.missing = set(missing)
        self.requested = []
        self.adapters = {}

    def mount(self, prefix, adapter):
        self.adapters[prefix] = adapter

    def get(self, url, headers=None, timeout=None, **kwargs):
        self.requested.append(url)
        if url in self.documents:
            return _response(200, json_doc=self.documents[url])
        path = url.split("?", 1)[0]
        parts = path.rsplit("/", 3)
        if len(parts) == 4 and parts[-1].endswith(".png"):
            row, col = int(parts[-2]), int(parts[-1][:-4])
            if (row, col) in self.missing:
                return _response(404)
            return _response(200, content=png_bytes(tile_color(row, col)))
        return _response(404)


@pytest.fixture
def solid_loader():
    return SolidLoader


@pytest.fixture
def fake_session(tiles_info, tile_matrix_set):
    def _make(missing=()):
        return FakeSession({TILES_INFO_URL: tiles_info, TMS_URL: tile_matrix_set}, missing=missing)
    return _make
