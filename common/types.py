from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from common.errors import ConfigurationError


Bounds = Tuple[float, float, float, float]  # (min_x, min_y, max_x, max_y) in map units


def _require(d: Mapping[str, Any], key: str, kind: str) -> Any:
    if key not in d:
        raise ConfigurationError(f"{kind} is missing required key '{key}'")
    return d[key]


@dataclass(frozen=True, slots=True)
class TileMatrix:
    """
    One fixed-resolution grid of the tile pyramid.

    Attributes:
        identifier: key of the matrix within its set (e.g. "0", "12").
        resolution: map units per pixel; must be > 0.
        tile_width, tile_height: tile size in pixels.
        left, top: map-space position of the top-left corner of tile (0, 0).
    """
    identifier: str
    resolution: float
    tile_width: int
    tile_height: int
    left: float
    top: float

    def __post_init__(self) -> None:
        if not self.resolution > 0:
            raise ConfigurationError(
                f"tile matrix {self.identifier} has non-positive resolution {self.resolution}"
            )
        if self.tile_width <= 0 or self.tile_height <= 0:
            raise ConfigurationError(
                f"tile matrix {self.identifier} has invalid tile size {self.tile_width}x{self.tile_height}"
            )

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "TileMatrix":
        try:
            return cls(
                identifier=str(_require(d, "identifier", "tile matrix")),
                resolution=float(_require(d, "resolution", "tile matrix")),
                tile_width=int(_require(d, "tileWidth", "tile matrix")),
                tile_height=int(_require(d, "tileHeight", "tile matrix")),
                left=float(_require(d, "left", "tile matrix")),
                top=float(_require(d, "top", "tile matrix")),
            )
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"malformed tile matrix {dict(d)!r}: {e}") from e


@dataclass(frozen=True, slots=True)
class TileMatrixLimit:
    """Inclusive row/column window of one matrix for the area of interest."""
    tile_matrix: str
    min_tile_row: int
    max_tile_row: int
    min_tile_col: int
    max_tile_col: int

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "TileMatrixLimit":
        try:
            return cls(
                tile_matrix=str(_require(d, "tileMatrix", "tile matrix limit")),
                min_tile_row=int(_require(d, "minTileRow", "tile matrix limit")),
                max_tile_row=int(_require(d, "maxTileRow", "tile matrix limit")),
                min_tile_col=int(_require(d, "minTileCol", "tile matrix limit")),
                max_tile_col=int(_require(d, "maxTileCol", "tile matrix limit")),
            )
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"malformed tile matrix limit {dict(d)!r}: {e}") from e


@dataclass(frozen=True, slots=True)
class Level:
    """A zoom level: a matrix together with the limit that makes it addressable."""
    matrix: TileMatrix
    limit: TileMatrixLimit

    @property
    def identifier(self) -> str:
        return self.matrix.identifier

    @property
    def resolution(self) -> float:
        return self.matrix.resolution

    @property
    def map_tile_width(self) -> float:
        return self.matrix.tile_width * self.matrix.resolution

    @property
    def map_tile_height(self) -> float:
        return self.matrix.tile_height * self.matrix.resolution

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "resolution": self.resolution,
            "tile_width": self.matrix.tile_width,
            "tile_height": self.matrix.tile_height,
            "rows": [self.limit.min_tile_row, self.limit.max_tile_row],
            "cols": [self.limit.min_tile_col, self.limit.max_tile_col],
        }


@dataclass(frozen=True, slots=True)
class TileDescriptor:
    """
    One drawable tile.

    Attributes:
        url: fully resolved tile URL.
        pixel_width, pixel_height: native image size (from the matrix).
        map_bounds: (min_x, min_y, max_x, max_y) in map units.
        row, col: tile indices within the matrix.
    """
    url: str
    pixel_width: int
    pixel_height: int
    map_bounds: Bounds
    row: int
    col: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "width": self.pixel_width,
            "height": self.pixel_height,
            "bounds": list(self.map_bounds),
            "row": self.row,
            "col": self.col,
        }


@dataclass(frozen=True, slots=True)
class Viewport:
    """Requested view: map-space center and an index into the level list."""
    center: Tuple[float, float]
    zoom_index: int
