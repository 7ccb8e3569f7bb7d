"""Pydantic schemas for level data and service APIs."""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from ..tile_engine.tile import Relation
from ..tile_engine.grid import WILDCARD


class TopicDefinition(BaseModel):
    """A group of levels teaching one concept."""
    id: int
    name: str
    description: str = ""
    icon: str = ""
    color: str = ""


class TutorialStep(BaseModel):
    title: str
    text: str


class EntanglementSpec(BaseModel):
    tile1: Tuple[int, int]
    tile2: Tuple[int, int]
    type: Relation = Relation.SAME


class LevelDefinition(BaseModel):
    """Shape, starting distributions, links and goal of one level.

    Starting weights come from ``weight_map`` (one vector per tile) when
    present, else ``weights`` (shared by every tile), else uniform.
    """
    topic_id: int
    level_number: int
    name: str
    is_teaching: bool = False
    rows: int = Field(gt=0)
    cols: int = Field(gt=0)
    outcome_count: int = Field(default=2, gt=0)
    weights: Optional[List[float]] = None
    weight_map: Optional[List[List[List[float]]]] = None
    entanglements: List[EntanglementSpec] = []
    goal_pattern: Optional[List[List[int]]] = None
    goal_description: str = ""
    optimal_moves: Optional[int] = None
    hint: str = ""
    tutorial_steps: List[TutorialStep] = []

    @model_validator(mode="after")
    def _check_shapes(self) -> "LevelDefinition":
        if self.weights is not None and len(self.weights) != self.outcome_count:
            raise ValueError(f"weights must have {self.outcome_count} entries")
        if self.weight_map is not None:
            if len(self.weight_map) != self.rows or any(len(r) != self.cols for r in self.weight_map):
                raise ValueError(f"weight_map must be {self.rows}x{self.cols}")
            if any(len(w) != self.outcome_count for r in self.weight_map for w in r):
                raise ValueError(f"every weight_map entry needs {self.outcome_count} weights")
        if self.goal_pattern is not None:
            if len(self.goal_pattern) != self.rows or any(len(r) != self.cols for r in self.goal_pattern):
                raise ValueError(f"goal_pattern must be {self.rows}x{self.cols}")
            if any(v != WILDCARD and not 0 <= v < self.outcome_count
                   for r in self.goal_pattern for v in r):
                raise ValueError("goal_pattern holds an outcome outside the outcome range")
        for link in self.entanglements:
            for r, c in (link.tile1, link.tile2):
                if not (0 <= r < self.rows and 0 <= c < self.cols):
                    raise ValueError(f"entanglement endpoint ({r}, {c}) is out of bounds")
        return self

    @property
    def key(self) -> Tuple[int, int]:
        return (self.topic_id, self.level_number)

    def initial_weights(self, row: int, col: int) -> Optional[List[float]]:
        if self.weight_map is not None:
            return self.weight_map[row][col]
        return self.weights


class InitRequest(BaseModel):
    """Request schema for starting a level."""
    topic_id: int
    level_number: int
    seed: Optional[int] = None


class MoveRequest(BaseModel):
    row: int
    col: int


class MoveResult(BaseModel):
    """Outcome of a single measurement move."""
    row: int
    col: int
    outcome: Optional[int] = None
    collapsed: List[Tuple[int, int]] = []
    moves: int
    solved: bool
    fully_collapsed: bool


class CompletionEvent(BaseModel):
    """Reported to progress tracking when a level is solved."""
    topic_id: int
    level_number: int
    moves: int
    elapsed: float
    optimal_moves: Optional[int] = None


class Achievement(BaseModel):
    id: str
    name: str
    description: str


class TopicProgress(BaseModel):
    completed: List[int] = []
    best_moves: Dict[int, int] = {}
    best_time: Dict[int, float] = {}


class ProgressState(BaseModel):
    current_topic: int = 0
    current_level: int = 0
    topic_progress: Dict[int, TopicProgress] = {}
    total_moves: int = 0
    total_time: float = 0.0
    achievements: List[str] = []
