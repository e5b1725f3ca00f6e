from __future__ import annotations

from typing import Dict, Iterable, List

from common.errors import ConfigurationError
from common.types import Level, TileMatrix, TileMatrixLimit


def resolve_levels(matrices: Iterable[TileMatrix], limits: Iterable[TileMatrixLimit]) -> List[Level]:
    """
    Pair every limit with the matrix it references and order the result by
    resolution, coarsest first (zoom 0 = least detail).

    - duplicate matrix identifiers: the last one wins
    - matrices no limit refers to are dropped
    - a limit naming an unknown matrix raises ConfigurationError
    - equal resolutions keep the order of `limits`
    """
    lookup: Dict[str, TileMatrix] = {}
    for matrix in matrices:
        lookup[matrix.identifier] = matrix

    levels: List[Level] = []
    for limit in limits:
        matrix = lookup.get(limit.tile_matrix)
        if matrix is None:
            raise ConfigurationError(f"missing level {limit.tile_matrix} in matrix")
        levels.append(Level(matrix=matrix, limit=limit))

    levels.sort(key=lambda lv: lv.matrix.resolution, reverse=True)
    return levels
