"""
Unit tests for the tile grid calculator
"""

import pytest

from common.errors import ConfigurationError
from common.types import Level, TileMatrix, TileMatrixLimit
from tilemap.grid import compute_tiles, tile_range

TEMPLATE = "https://t/{tileMatrix}/{tileRow}/{tileCol}.png"


def _wide_level(left=0.0, top=0.0):
    """Resolution 2, 256px tiles, rows/cols 0..9."""
    return Level(
        matrix=TileMatrix(identifier="7", resolution=2.0, tile_width=256, tile_height=256, left=left, top=top),
        limit=TileMatrixLimit(tile_matrix="7", min_tile_row=0, max_tile_row=9, min_tile_col=0, max_tile_col=9),
    )


class TestTileRange:
    """Bounds -> clamped index window"""

    def test_rounds_outward(self, level):
        """A bound on a tile edge also pulls in the neighbour (ceil)"""
        assert tile_range((0, -512, 512, 0), level) == (0, 0, 1, 1)

    def test_clamped_to_limit(self, level):
        assert tile_range((-5000, -5000, 5000, 5000), level) == (0, 0, 1, 1)

    def test_offset_origin(self):
        lv = _wide_level(left=-1024.0, top=1024.0)
        # x: (-1000 + 1024) / 512 -> col 0 .. ceil((100 + 1024) / 512) = 3
        # y: (1024 - 900) / 512 -> row 0 .. ceil((1024 + 10) / 512) = 3
        assert tile_range((-1000, -10, 100, 900), lv) == (0, 0, 3, 3)

    def test_inverted_bounds_rejected(self, level):
        with pytest.raises(ConfigurationError, match="inverted"):
            tile_range((10, 0, 0, 10), level)

    def test_wrong_length_rejected(self, level):
        with pytest.raises(ConfigurationError):
            tile_range((0, 0, 1), level)

    @pytest.mark.parametrize("bounds", [
        (float("nan"), 0, 10, 10),
        (0, 0, float("inf"), 10),
        (0, float("-inf"), 10, 10),
        (0, 0, 10, float("nan")),
    ])
    def test_non_finite_rejected(self, level, bounds):
        with pytest.raises(ConfigurationError, match="finite"):
            tile_range(bounds, level)


class TestComputeTiles:
    """Tile enumeration"""

    def test_worked_example(self, level):
        """res 2 x 256px = 512 map units; the exact 512-wide box touches four tiles"""
        tiles = compute_tiles((0, -512, 512, 0), level, TEMPLATE)

        assert [(t.row, t.col) for t in tiles] == [(0, 0), (0, 1), (1, 0), (1, 1)]
        assert tiles[0].map_bounds == (0.0, -512.0, 512.0, 0.0)
        assert tiles[1].map_bounds == (512.0, -512.0, 1024.0, 0.0)
        assert tiles[2].map_bounds == (0.0, -1024.0, 512.0, -512.0)
        assert tiles[3].map_bounds == (512.0, -1024.0, 1024.0, -512.0)
        for t in tiles:
            assert (t.pixel_width, t.pixel_height) == (256, 256)

    def test_urls(self, level):
        tiles = compute_tiles((0, -512, 512, 0), level, TEMPLATE)
        assert [t.url for t in tiles] == [
            "https://t/0/0/0.png",
            "https://t/0/0/1.png",
            "https://t/0/1/0.png",
            "https://t/0/1/1.png",
        ]

    def test_unrelated_placeholders_survive(self, level):
        tiles = compute_tiles((0, -10, 10, 0), level, "https://t/{tileMatrix}/{tileRow}/{tileCol}?k={apiKey}")
        assert tiles[0].url == "https://t/0/0/0?k={apiKey}"

    def test_row_major_order(self):
        tiles = compute_tiles((100, -900, 700, -50), _wide_level(), TEMPLATE)
        coords = [(t.row, t.col) for t in tiles]
        assert coords == sorted(coords)
        assert len(tiles) == 9

    def test_outside_limit_is_empty(self, level):
        """A box beyond the limit's columns yields nothing, not an error"""
        assert compute_tiles((2048, -100, 3000, 0), level, TEMPLATE) == []

    def test_above_top_is_empty(self, level):
        assert compute_tiles((0, 5000, 100, 6000), level, TEMPLATE) == []

    def test_zero_area_bounds(self, level):
        """A single point still gets the tile containing it"""
        tiles = compute_tiles((100, -100, 100, -100), level, TEMPLATE)
        assert (0, 0) in [(t.row, t.col) for t in tiles]
        t00 = next(t for t in tiles if (t.row, t.col) == (0, 0))
        min_x, min_y, max_x, max_y = t00.map_bounds
        assert min_x <= 100 <= max_x and min_y <= -100 <= max_y

    def test_covers_requested_bounds(self):
        """Union of tiles contains the box"""
        bounds = (100, -900, 700, -50)
        tiles = compute_tiles(bounds, _wide_level(), TEMPLATE)
        assert min(t.map_bounds[0] for t in tiles) <= bounds[0]
        assert min(t.map_bounds[1] for t in tiles) <= bounds[1]
        assert max(t.map_bounds[2] for t in tiles) >= bounds[2]
        assert max(t.map_bounds[3] for t in tiles) >= bounds[3]

    def test_adjacent_tiles_are_contiguous(self):
        """Right edge of (r, c) is the left edge of (r, c + 1); bottom of (r, c) is the top of (r + 1, c)"""
        lv = Level(
            matrix=TileMatrix(identifier="f", resolution=0.3, tile_width=256, tile_height=256, left=-20037508.34, top=20037508.34),
            limit=TileMatrixLimit(tile_matrix="f", min_tile_row=0, max_tile_row=500000, min_tile_col=0, max_tile_col=500000),
        )
        by_rc = {(t.row, t.col): t for t in compute_tiles((-20000000, 19990000, -19999000, 20000000), lv, TEMPLATE)}
        assert len(by_rc) > 4
        for (r, c), t in by_rc.items():
            if (r, c + 1) in by_rc:
                assert t.map_bounds[2] == by_rc[(r, c + 1)].map_bounds[0]
            if (r + 1, c) in by_rc:
                assert t.map_bounds[1] == by_rc[(r + 1, c)].map_bounds[3]

    def test_idempotent(self, level):
        a = compute_tiles((13, -700, 900, -3), level, TEMPLATE)
        b = compute_tiles((13, -700, 900, -3), level, TEMPLATE)
        assert a == b
        assert a is not b
