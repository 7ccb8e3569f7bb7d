"""Game service that wraps the tile engine and level catalog with a clean API."""

import logging
from typing import Any, Dict, List, Optional

from ...pkgs.tile_engine import Grid
from ...pkgs.observability import (
    setup_logging, MetricsCollector, SeedManager, EventBus,
    TILE_MEASURED, INTERFERENCE_APPLIED, LEVEL_COMPLETED
)
from ...pkgs.session_runtime import (
    LevelCatalog, LevelDefinition, MoveRecorder, ProgressTracker,
    InitRequest, MoveRequest, MoveResult, CompletionEvent, Achievement
)

logger = logging.getLogger(__name__)


class GameService:
    """High-level play session over one level at a time.

    The service owns the grid for the active level, counts moves, times
    the attempt and publishes ``level_completed`` the first time the
    level's goal is met.
    """

    def __init__(self, cfg: Optional[Dict] = None, catalog: Optional[LevelCatalog] = None,
                 event_bus: Optional[EventBus] = None, progress: Optional[ProgressTracker] = None):
        self.cfg = cfg or {}
        setup_logging(self.cfg.get('log_level', 'INFO'))

        self.catalog = catalog or LevelCatalog.from_yaml(self.cfg.get('catalog_path'))
        self.events = event_bus or EventBus()
        self.progress = progress
        if self.progress is not None:
            self.events.subscribe(LEVEL_COMPLETED, self._record_progress)

        self.metrics = MetricsCollector()
        self.seed_manager = SeedManager(self.cfg.get('global_seed', 0))
        self.grid: Optional[Grid] = None
        self.level: Optional[LevelDefinition] = None
        self.recorder: Optional[MoveRecorder] = None
        self.moves = 0
        self.attempt = 0
        self.completed = False
        self.achievements: List[Achievement] = []
        self._last_request: Optional[InitRequest] = None
        logger.info("GameService initialized")

    def init(self, req: InitRequest) -> Dict[str, Any]:
        """Start a level."""
        return self._start(req, attempt=0)

    def _start(self, req: InitRequest, attempt: int) -> Dict[str, Any]:
        level = self.catalog.get(req.topic_id, req.level_number)
        seed = req.seed if req.seed is not None else self.cfg.get('global_seed', 0)
        logger.info(f"Starting level {req.topic_id}-{req.level_number} "
                    f"(attempt {attempt}) with seed={seed}")

        self.seed_manager = SeedManager(seed)
        # One draw stream per attempt
        rng = self.seed_manager.random_source(
            f"level_{req.topic_id}_{req.level_number}_attempt_{attempt}"
        )
        self.attempt = attempt
        self.level = level
        self.grid = self.catalog.build_grid(level, rng)
        self.recorder = MoveRecorder(enabled=self.cfg.get('recorder', {}).get('enabled', True))
        self.moves = 0
        self.completed = False
        self.achievements: List[Achievement] = []
        self._last_request = req

        self.metrics.reset()
        self.metrics.set_metric("level", f"{req.topic_id}-{req.level_number}")
        self.metrics.start_timer("level_elapsed")

        return {
            "status": "initialized",
            "topic_id": level.topic_id,
            "level_number": level.level_number,
            "name": level.name,
            "rows": level.rows,
            "cols": level.cols,
            "outcome_count": level.outcome_count,
            "seed": seed,
            "attempt": attempt,
            "goal_pattern": level.goal_pattern,
            "optimal_moves": level.optimal_moves
        }

    def _require_grid(self) -> Grid:
        if self.grid is None:
            raise RuntimeError("No level loaded. Call init() first.")
        return self.grid

    def measure(self, req: MoveRequest) -> MoveResult:
        """Measure one tile. Only a fresh collapse counts as a move."""
        grid = self._require_grid()
        tile = grid.tile_at(req.row, req.col)

        if tile is None or tile.state.collapsed:
            outcome = None if tile is None else tile.state.collapsed_outcome
            return self._result(req, outcome, [])

        before = grid.current_pattern()
        outcome = grid.measure_tile(req.row, req.col)
        collapsed = [(req.row, req.col)] + [
            t.coord for t in grid.tiles()
            if t.state.collapsed and before[t.row][t.col] is None and t.coord != (req.row, req.col)
        ]

        self.moves += 1
        self.metrics.increment_counter("moves")
        self.metrics.increment_counter("measurements")
        self.metrics.increment_counter("cascaded_tiles", len(collapsed) - 1)

        result = self._result(req, outcome, collapsed)
        if self.recorder:
            self.recorder.log({
                "move": self.moves,
                "row": req.row,
                "col": req.col,
                "outcome": outcome,
                "collapsed": collapsed,
                "solved": result.solved
            })
        logger.debug(f"Move {self.moves}: ({req.row}, {req.col}) -> {outcome}, "
                     f"{len(collapsed)} tiles collapsed")

        self.events.publish(TILE_MEASURED, result)
        self._check_completion()
        return result

    def _result(self, req: MoveRequest, outcome: Optional[int], collapsed) -> MoveResult:
        return MoveResult(
            row=req.row,
            col=req.col,
            outcome=outcome,
            collapsed=collapsed,
            moves=self.moves,
            solved=self.is_solved(),
            fully_collapsed=self.grid.is_fully_collapsed()
        )

    def interfere(self, row: int, col: int) -> bool:
        """Apply neighbour interference to a tile. Not counted as a move."""
        grid = self._require_grid()
        applied = grid.apply_interference(row, col)
        if applied:
            self.metrics.increment_counter("interference_applied")
            self.events.publish(INTERFERENCE_APPLIED, {"row": row, "col": col})
        return applied

    def is_solved(self) -> bool:
        grid = self._require_grid()
        return grid.is_solved(self.level.goal_pattern)

    def is_stuck(self) -> bool:
        """Every tile collapsed without meeting the goal; only a restart helps."""
        grid = self._require_grid()
        return grid.is_fully_collapsed() and not self.is_solved()

    def _check_completion(self):
        if self.completed or not self.is_solved():
            return
        self.completed = True
        elapsed = self.metrics.stop_timer("level_elapsed")
        event = CompletionEvent(
            topic_id=self.level.topic_id,
            level_number=self.level.level_number,
            moves=self.moves,
            elapsed=elapsed,
            optimal_moves=self.level.optimal_moves
        )
        logger.info(f"Level {self.level.topic_id}-{self.level.level_number} solved "
                    f"in {self.moves} moves")
        self.events.publish(LEVEL_COMPLETED, event)

    def _record_progress(self, event: CompletionEvent):
        """Report a completion to the progress tracker and keep what it awards."""
        self.achievements = self.progress.on_level_completed(event)
        for achievement in self.achievements:
            logger.info(f"Achievement unlocked: {achievement.name} ({achievement.id})")

    def checkpoint(self) -> Grid:
        """Copy of the current grid for callers that keep history.

        The copy shares the live grid's random source; measuring it advances
        the same draw stream.
        """
        return self._require_grid().clone()

    def snapshot(self) -> Dict[str, Any]:
        """Summary snapshot of the active level."""
        if self.grid is None:
            return {"status": "not_initialized"}

        return {
            "status": "solved" if self.completed else ("stuck" if self.is_stuck() else "active"),
            "level": {"topic_id": self.level.topic_id, "level_number": self.level.level_number,
                      "name": self.level.name},
            "pattern": self.grid.current_pattern(),
            "probabilities": self.grid.probability_map().round(4).tolist(),
            "moves": self.moves,
            "elapsed": self.metrics.elapsed("level_elapsed"),
            "metrics": self.metrics.get_all_metrics(),
            "achievements": [a.id for a in self.achievements],
            "recent_moves": self.recorder.get_recent(5) if self.recorder else []
        }

    def export_moves(self, format: str = "jsonl", path: str = "logs/quantum_tiles") -> str:
        """Export recorded moves in the given format."""
        if not self.recorder:
            raise RuntimeError("No recorder available")

        if format == "csv":
            full_path = f"{path}.csv"
            self.recorder.dump_csv(full_path)
        elif format == "jsonl":
            full_path = f"{path}.jsonl"
            self.recorder.dump_jsonl(full_path)
        else:
            raise ValueError(f"Unsupported format: {format}")

        logger.info(f"Moves exported to: {full_path}")
        return full_path

    def reset(self) -> Dict[str, Any]:
        """Restart the active level from its initial state."""
        if self._last_request is None:
            raise RuntimeError("No level loaded. Call init() first.")
        logger.info("Restarting level")
        return self._start(self._last_request, self.attempt + 1)
