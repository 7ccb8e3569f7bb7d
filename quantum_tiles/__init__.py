"""Quantum Tiles - discrete superposition, collapse and entanglement puzzles."""

__version__ = "0.1.0"

# Tile engine
from .pkgs.tile_engine import (
    StateDistribution, InvalidDistribution, RandomSource,
    Tile, Relation, Grid, WILDCARD, UNSET
)

from .pkgs.session_runtime import (
    LevelCatalog, LevelDefinition, TopicDefinition,
    MoveRecorder, ProgressTracker,
    InitRequest, MoveRequest, MoveResult, CompletionEvent
)

from .pkgs.observability import (
    setup_logging,
    MetricsCollector, SeedManager,
    EventBus
)

# High-level service
from .apps.game.game_service import GameService

__all__ = [
    # Tile engine
    'StateDistribution', 'InvalidDistribution', 'RandomSource',
    'Tile', 'Relation', 'Grid', 'WILDCARD', 'UNSET',

    # Session runtime
    'LevelCatalog', 'LevelDefinition', 'TopicDefinition',
    'MoveRecorder', 'ProgressTracker',
    'InitRequest', 'MoveRequest', 'MoveResult', 'CompletionEvent',

    # Observability
    'setup_logging', 'MetricsCollector', 'SeedManager', 'EventBus',

    # High-level interface
    'GameService'
]
