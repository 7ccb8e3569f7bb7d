"""Level progression: unlock rules, best scores and achievements.

State is kept in memory as a ``ProgressState``; persisting it is left to
the caller through ``to_dict``/``from_dict``.
"""

import logging
from typing import Any, Dict, List, Optional

from .schemas import Achievement, CompletionEvent, ProgressState, TopicProgress

logger = logging.getLogger(__name__)

LEVELS_PER_TOPIC = 5
# Move count that earns "perfect" when a level declares no optimum
DEFAULT_PERFECT_MOVES = 3


class ProgressTracker:
    """Tracks completed levels for one player."""

    def __init__(self, levels_per_topic: int = LEVELS_PER_TOPIC,
                 state: Optional[ProgressState] = None):
        self.levels_per_topic = levels_per_topic
        self.state = state or ProgressState()

    def _topic(self, topic_id: int) -> Optional[TopicProgress]:
        return self.state.topic_progress.get(topic_id)

    def is_level_completed(self, topic_id: int, level_number: int) -> bool:
        topic = self._topic(topic_id)
        return topic is not None and level_number in topic.completed

    def is_level_unlocked(self, topic_id: int, level_number: int) -> bool:
        """Tutorials are always open; each later level needs its predecessor."""
        if level_number == 0:
            return True
        topic = self._topic(topic_id)
        if topic is None:
            return False
        return (level_number - 1) in topic.completed

    def is_topic_unlocked(self, topic_id: int) -> bool:
        """The first topic is open; others need every level of the previous one."""
        if topic_id == 0:
            return True
        previous = self._topic(topic_id - 1)
        return previous is not None and len(previous.completed) >= self.levels_per_topic

    def complete_level(self, topic_id: int, level_number: int, moves: int, elapsed: float,
                       optimal_moves: Optional[int] = None) -> List[Achievement]:
        """Record a completion and return the achievements it newly earned."""
        topic = self.state.topic_progress.setdefault(topic_id, TopicProgress())

        if level_number not in topic.completed:
            topic.completed.append(level_number)
            topic.completed.sort()

        best_moves = topic.best_moves.get(level_number)
        if best_moves is None or moves < best_moves:
            topic.best_moves[level_number] = moves
        best_time = topic.best_time.get(level_number)
        if best_time is None or elapsed < best_time:
            topic.best_time[level_number] = elapsed

        self.state.total_moves += moves
        self.state.total_time += elapsed
        self.state.current_topic = topic_id
        self.state.current_level = level_number

        earned = self._check_achievements(topic_id, level_number, moves, optimal_moves)
        logger.info(f"Level {topic_id}-{level_number} completed in {moves} moves "
                    f"({elapsed:.1f}s), {len(earned)} new achievements")
        return earned

    def on_level_completed(self, event: CompletionEvent) -> List[Achievement]:
        """EventBus callback for ``level_completed``."""
        return self.complete_level(event.topic_id, event.level_number, event.moves,
                                   event.elapsed, event.optimal_moves)

    def _check_achievements(self, topic_id: int, level_number: int, moves: int,
                            optimal_moves: Optional[int]) -> List[Achievement]:
        candidates = []
        if topic_id == 0 and level_number == 0:
            candidates.append(Achievement(
                id="first_steps", name="First Steps",
                description="Complete your first level"))

        topic = self._topic(topic_id)
        if topic is not None and len(topic.completed) == self.levels_per_topic:
            candidates.append(Achievement(
                id=f"topic_{topic_id}_complete", name="Topic Master",
                description=f"Complete all levels in topic {topic_id + 1}"))

        target = optimal_moves if optimal_moves is not None else DEFAULT_PERFECT_MOVES
        if moves <= target:
            candidates.append(Achievement(
                id=f"perfect_{topic_id}_{level_number}", name="Perfect Solution",
                description=f"Solve level {level_number + 1} in optimal moves"))

        earned = [a for a in candidates if a.id not in self.state.achievements]
        self.state.achievements.extend(a.id for a in earned)
        return earned

    def get_best_score(self, topic_id: int, level_number: int) -> Dict[str, Any]:
        topic = self._topic(topic_id)
        if topic is None:
            return {"moves": None, "time": None}
        return {
            "moves": topic.best_moves.get(level_number),
            "time": topic.best_time.get(level_number)
        }

    def topic_completion(self, topic_id: int) -> float:
        """Percentage of a topic's levels completed."""
        topic = self._topic(topic_id)
        if topic is None:
            return 0.0
        return len(topic.completed) / self.levels_per_topic * 100

    def total_completion(self, total_topics: int) -> float:
        total = total_topics * self.levels_per_topic
        if total == 0:
            return 0.0
        completed = sum(
            len(self.state.topic_progress[t].completed)
            for t in range(total_topics) if t in self.state.topic_progress
        )
        return completed / total * 100

    def reset(self):
        self.state = ProgressState()
        logger.info("Progress reset")

    def to_dict(self) -> Dict[str, Any]:
        return self.state.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any],
                  levels_per_topic: int = LEVELS_PER_TOPIC) -> "ProgressTracker":
        return cls(levels_per_topic, ProgressState.model_validate(data))
