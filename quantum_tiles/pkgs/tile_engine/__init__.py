"""Tile engine for the quantum tiles puzzle.

This package contains the simulation core without side effects beyond
the grid it mutates:
- Outcome distributions and collapse
- Tiles with entanglement links and the collapse cascade
- The grid with interference, wiring and pattern queries
"""

from .state import (
    StateDistribution, InvalidDistribution, RandomSource,
    SIGNIFICANCE_THRESHOLD, default_random_source
)
from .tile import Tile, Relation, Coord
from .grid import Grid, WILDCARD, UNSET, INTERFERENCE_COEFFICIENT

__all__ = [
    'StateDistribution', 'InvalidDistribution', 'RandomSource',
    'SIGNIFICANCE_THRESHOLD', 'default_random_source',
    'Tile', 'Relation', 'Coord',
    'Grid', 'WILDCARD', 'UNSET', 'INTERFERENCE_COEFFICIENT'
]
