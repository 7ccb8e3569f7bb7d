"""Tile grid: measurement, interference, entanglement wiring and pattern queries."""

import logging
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .state import InvalidDistribution, RandomSource, StateDistribution, default_random_source
from .tile import Relation, RelationLike, Tile

logger = logging.getLogger(__name__)

# Pattern cell that matches any tile, collapsed or not
WILDCARD = -1
# Marker for uncollapsed tiles in current_pattern()
UNSET = None

# Additive bias each superposed neighbour contributes per outcome
INTERFERENCE_COEFFICIENT = 0.1

ORTHOGONAL_DIRECTIONS: Tuple[Tuple[int, int], ...] = ((-1, 0), (0, -1), (0, 1), (1, 0))
DIAGONAL_DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1),
)

Pattern = List[List[Optional[int]]]


class Grid:
    """Dense ``rows x cols`` collection of tiles sharing one random source."""

    def __init__(self, rows: int, cols: int, outcome_count: int = 2,
                 rng: Optional[RandomSource] = None, tiles: Optional[List[Tile]] = None):
        if rows < 1 or cols < 1:
            raise ValueError(f"Grid shape must be positive, got {rows}x{cols}")
        if outcome_count < 1:
            raise InvalidDistribution(f"outcome_count must be positive, got {outcome_count}")
        self.rows = rows
        self.cols = cols
        self.outcome_count = outcome_count
        self.rng = rng or default_random_source()
        if tiles is not None and len(tiles) != rows * cols:
            raise ValueError(f"Expected {rows * cols} tiles, got {len(tiles)}")
        # Row-major: (r, c) lives at r * cols + c
        self._tiles: List[Tile] = tiles if tiles is not None else [
            Tile(r, c, StateDistribution(outcome_count))
            for r in range(rows)
            for c in range(cols)
        ]

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def tile_at(self, row: int, col: int) -> Optional[Tile]:
        """Tile at (row, col), or None when out of bounds."""
        if self.in_bounds(row, col):
            return self._tiles[row * self.cols + col]
        return None

    def tiles(self) -> Iterator[Tile]:
        """Iterate tiles in row-major order."""
        return iter(self._tiles)

    def __iter__(self) -> Iterator[Tile]:
        return self.tiles()

    def row_tiles(self, row: int) -> List[Tile]:
        return self._tiles[row * self.cols:(row + 1) * self.cols]

    def set_distribution(self, row: int, col: int, weights: Sequence[float]) -> bool:
        """Replace an uncollapsed tile's distribution with normalized ``weights``."""
        tile = self.tile_at(row, col)
        if tile is None or tile.state.collapsed:
            return False
        state = StateDistribution.from_weights(weights)
        if state.outcome_count != self.outcome_count:
            raise InvalidDistribution(
                f"Expected {self.outcome_count} weights for ({row}, {col}), got {state.outcome_count}"
            )
        tile.state = state
        return True

    def measure_tile(self, row: int, col: int) -> Optional[int]:
        """Measure a tile; None when out of bounds."""
        tile = self.tile_at(row, col)
        if tile is None:
            return None
        if tile.state.collapsed:
            return tile.state.collapsed_outcome
        return tile.measure(self.tile_at, self.rng)

    def neighbors_of(self, row: int, col: int, include_diagonals: bool = False) -> List[Tile]:
        """In-bounds neighbours in fixed order: up, left, right, down."""
        directions = DIAGONAL_DIRECTIONS if include_diagonals else ORTHOGONAL_DIRECTIONS
        neighbors = []
        for dr, dc in directions:
            tile = self.tile_at(row + dr, col + dc)
            if tile is not None:
                neighbors.append(tile)
        return neighbors

    def apply_interference(self, row: int, col: int) -> bool:
        """Bias a superposed tile toward outcomes its superposed neighbours favour.

        Contributions from all qualifying neighbours are summed before a
        single renormalization. Returns True when the weights changed.
        """
        tile = self.tile_at(row, col)
        if tile is None or tile.state.collapsed:
            return False

        superposed = [n for n in self.neighbors_of(row, col) if n.state.is_superposed()]
        if not superposed:
            return False

        new_weights = tile.state.weights.copy()
        for neighbor in superposed:
            new_weights += neighbor.state.weights * INTERFERENCE_COEFFICIENT

        tile.state.weights = new_weights
        tile.state.normalize()
        logger.debug(f"Interference on ({row}, {col}) from {len(superposed)} neighbours")
        return True

    def link_entanglement(self, r1: int, c1: int, r2: int, c2: int,
                          relation: RelationLike = Relation.SAME) -> bool:
        """Entangle two tiles. Out-of-bounds coordinates are silently skipped."""
        first = self.tile_at(r1, c1)
        second = self.tile_at(r2, c2)
        if first is None or second is None:
            return False
        return first.link_to(second, relation)

    def linked_tiles(self, row: int, col: int) -> List[Tuple[Tile, Relation]]:
        """Partners of (row, col) resolved to this grid's tiles."""
        tile = self.tile_at(row, col)
        if tile is None:
            return []
        return [(self.tile_at(r, c), relation) for (r, c), relation in tile.links.items()]

    def is_fully_collapsed(self) -> bool:
        return all(tile.state.collapsed for tile in self._tiles)

    def collapsed_count(self) -> int:
        return sum(1 for tile in self._tiles if tile.state.collapsed)

    def matches_pattern(self, pattern: Sequence[Sequence[int]]) -> bool:
        """Compare collapsed outcomes against ``pattern``; WILDCARD cells match anything."""
        if len(pattern) != self.rows or any(len(line) != self.cols for line in pattern):
            return False

        for tile in self._tiles:
            target = pattern[tile.row][tile.col]
            if target == WILDCARD:
                continue
            if not tile.state.collapsed or tile.state.collapsed_outcome != target:
                return False
        return True

    def is_solved(self, goal_pattern: Optional[Sequence[Sequence[int]]] = None) -> bool:
        """Goal reached: pattern match when a goal exists, otherwise full collapse."""
        if goal_pattern is None:
            return self.is_fully_collapsed()
        return self.matches_pattern(goal_pattern)

    def current_pattern(self) -> Pattern:
        """Snapshot of collapsed outcomes, UNSET where still uncollapsed."""
        return [
            [tile.state.collapsed_outcome if tile.state.collapsed else UNSET
             for tile in self.row_tiles(r)]
            for r in range(self.rows)
        ]

    def probability_map(self) -> np.ndarray:
        """``rows x cols x outcome_count`` array of current weights."""
        return np.stack([tile.state.weights for tile in self._tiles]).reshape(
            self.rows, self.cols, self.outcome_count
        )

    def clone(self) -> "Grid":
        """Copy with cloned tile states and links replayed onto the copy's own tiles.

        The random source is shared, not copied: measuring the clone draws
        from the same stream as this grid and advances it. Assign a new
        ``rng`` to the clone for an independent stream.
        """
        tiles = []
        for original in self._tiles:
            copy = original.clone()
            copy.links.update(original.links)
            tiles.append(copy)
        return Grid(self.rows, self.cols, self.outcome_count, rng=self.rng, tiles=tiles)

    def __repr__(self) -> str:
        return (f"Grid({self.rows}x{self.cols}, outcomes={self.outcome_count}, "
                f"collapsed={self.collapsed_count()}/{len(self._tiles)})")
