"""
Session runtime for play orchestration and bookkeeping.

This package holds everything around the tile engine that a play session
needs: validated level data, move recording and progression tracking.
"""

from .schemas import (
    TopicDefinition, TutorialStep, EntanglementSpec, LevelDefinition,
    InitRequest, MoveRequest, MoveResult, CompletionEvent,
    Achievement, TopicProgress, ProgressState
)
from .recorder import MoveRecorder
from .levels import LevelCatalog, BUNDLED_CATALOG
from .progress import ProgressTracker, LEVELS_PER_TOPIC

__all__ = [
    'TopicDefinition', 'TutorialStep', 'EntanglementSpec', 'LevelDefinition',
    'InitRequest', 'MoveRequest', 'MoveResult', 'CompletionEvent',
    'Achievement', 'TopicProgress', 'ProgressState',
    'MoveRecorder', 'LevelCatalog', 'BUNDLED_CATALOG',
    'ProgressTracker', 'LEVELS_PER_TOPIC'
]
