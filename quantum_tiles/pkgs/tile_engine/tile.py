"""Grid tiles and the entanglement cascade."""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from .state import RandomSource, StateDistribution

logger = logging.getLogger(__name__)

Coord = Tuple[int, int]


class Relation(str, Enum):
    """How a forced collapse maps across an entanglement link."""
    SAME = "same"
    OPPOSITE = "opposite"

    def apply(self, outcome: int, outcome_count: int) -> int:
        """Outcome forced on the partner of a tile that resolved to ``outcome``.

        OPPOSITE reverses the outcome space, which is ``1 - outcome`` for
        binary tiles.
        """
        if self is Relation.SAME:
            return outcome
        return (outcome_count - 1) - outcome


RelationLike = Union[Relation, str]

# Maps a coordinate to the live tile in the owning grid, or None
TileResolver = Callable[[int, int], Optional["Tile"]]


class Tile:
    """A grid cell holding one distribution and its entanglement links.

    Links are keyed by the partner's coordinate rather than by object so a
    tile never holds a reference to another tile; the owning grid resolves
    coordinates at traversal time.
    """

    def __init__(self, row: int, col: int, state: Optional[StateDistribution] = None):
        self.row = row
        self.col = col
        self.state = state if state is not None else StateDistribution(2)
        self.links: Dict[Coord, Relation] = {}

    @property
    def coord(self) -> Coord:
        return (self.row, self.col)

    @property
    def collapsed(self) -> bool:
        return self.state.collapsed

    @property
    def outcome(self) -> Optional[int]:
        return self.state.collapsed_outcome

    def link_to(self, other: "Tile", relation: RelationLike = Relation.SAME) -> bool:
        """Entangle with ``other`` in both directions.

        Each side gains an entry only if it has none for the partner yet, so
        a second call with a different relation is ignored.
        """
        if other.coord == self.coord:
            logger.debug(f"Ignoring self-link on {self.coord}")
            return False
        relation = Relation(relation)
        added = False
        if other.coord not in self.links:
            self.links[other.coord] = relation
            added = True
        if self.coord not in other.links:
            other.links[self.coord] = relation
            added = True
        return added

    def measure(self, resolve: TileResolver, rng: Optional[RandomSource] = None) -> int:
        """Collapse this tile with a free draw and propagate to its partners."""
        if self.state.collapsed:
            return self.state.collapsed_outcome
        outcome = self.state.collapse(rng=rng)
        cascaded = self.cascade(resolve)
        if cascaded:
            logger.debug(f"Measurement of {self.coord} cascaded to {len(cascaded)} tiles")
        return outcome

    def cascade(self, resolve: TileResolver) -> List[Coord]:
        """Force-collapse every uncollapsed tile reachable through links.

        Walks depth-first in link insertion order, matching a recursive
        traversal, with an explicit stack. Only uncollapsed tiles are pushed,
        so each tile is visited once even on cyclic link graphs.
        """
        collapsed: List[Coord] = []
        stack = [(self, iter(list(self.links.items())))]
        while stack:
            source, pending = stack[-1]
            entry = next(pending, None)
            if entry is None:
                stack.pop()
                continue
            (row, col), relation = entry
            partner = resolve(row, col)
            if partner is None or partner.state.collapsed:
                continue
            forced = relation.apply(source.state.collapsed_outcome, partner.state.outcome_count)
            partner.state.collapse(forced)
            collapsed.append(partner.coord)
            stack.append((partner, iter(list(partner.links.items()))))
        return collapsed

    def clone(self) -> "Tile":
        """Copy coordinates and state. Links are rebuilt by the owning grid."""
        return Tile(self.row, self.col, self.state.clone())

    def __repr__(self) -> str:
        return f"Tile({self.row}, {self.col}, {self.state!r})"
