"""Level catalog loading and grid construction."""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import yaml

from ..tile_engine import Grid, RandomSource
from .schemas import LevelDefinition, TopicDefinition

logger = logging.getLogger(__name__)

BUNDLED_CATALOG = Path(__file__).with_name("levels.yaml")


class LevelCatalog:
    """Topics and levels validated from a YAML document."""

    def __init__(self, topics: List[TopicDefinition], levels: List[LevelDefinition]):
        self.topics: Dict[int, TopicDefinition] = {t.id: t for t in topics}
        self.levels: Dict[Tuple[int, int], LevelDefinition] = {}
        for level in levels:
            if level.key in self.levels:
                raise ValueError(f"Duplicate level {level.key}")
            if level.topic_id not in self.topics:
                raise ValueError(f"Level {level.key} refers to unknown topic {level.topic_id}")
            self.levels[level.key] = level

    @classmethod
    def from_dict(cls, data: Dict) -> "LevelCatalog":
        topics = [TopicDefinition(**t) for t in data.get("topics", [])]
        levels = [LevelDefinition(**lv) for lv in data.get("levels", [])]
        return cls(topics, levels)

    @classmethod
    def from_yaml(cls, path: Optional[Union[str, Path]] = None) -> "LevelCatalog":
        """Load a catalog file; the bundled catalog when no path is given."""
        path = Path(path) if path else BUNDLED_CATALOG
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        catalog = cls.from_dict(data)
        logger.info(f"Loaded {len(catalog.levels)} levels in {len(catalog.topics)} topics from {path}")
        return catalog

    def get(self, topic_id: int, level_number: int) -> LevelDefinition:
        try:
            return self.levels[(topic_id, level_number)]
        except KeyError:
            raise KeyError(f"Unknown level {topic_id}-{level_number}") from None

    def levels_for(self, topic_id: int) -> List[LevelDefinition]:
        return sorted(
            (lv for lv in self.levels.values() if lv.topic_id == topic_id),
            key=lambda lv: lv.level_number
        )

    def levels_per_topic(self) -> int:
        """Largest level count among topics."""
        counts = [len(self.levels_for(t)) for t in self.topics]
        return max(counts) if counts else 0

    @staticmethod
    def build_grid(level: LevelDefinition, rng: Optional[RandomSource] = None) -> Grid:
        """Grid for ``level`` initialized through the grid's public operations."""
        grid = Grid(level.rows, level.cols, level.outcome_count, rng=rng)
        for r in range(level.rows):
            for c in range(level.cols):
                weights = level.initial_weights(r, c)
                if weights is not None:
                    grid.set_distribution(r, c, weights)
        for link in level.entanglements:
            grid.link_entanglement(*link.tile1, *link.tile2, link.type)
        return grid
