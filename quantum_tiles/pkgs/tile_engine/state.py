"""Discrete outcome distributions and their one-shot collapse."""

import logging
from typing import Callable, List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

# A callable returning a uniform float in [0, 1)
RandomSource = Callable[[], float]

# Weight above which an outcome counts toward superposition
SIGNIFICANCE_THRESHOLD = 0.01


class InvalidDistribution(ValueError):
    """Raised when a distribution cannot be constructed from the given input."""


def default_random_source() -> RandomSource:
    """Unseeded numpy generator, used when no source is injected."""
    return np.random.default_rng().random


class StateDistribution:
    """Probability distribution over ``outcome_count`` discrete outcomes."""

    def __init__(self, outcome_count: int = 2):
        if outcome_count < 1:
            raise InvalidDistribution(f"outcome_count must be positive, got {outcome_count}")
        self.outcome_count = int(outcome_count)
        self.weights = np.full(self.outcome_count, 1.0 / self.outcome_count, dtype=np.float64)
        self.collapsed = False
        self.collapsed_outcome: Optional[int] = None

    @classmethod
    def from_weights(cls, weights: Sequence[float]) -> "StateDistribution":
        """Build a distribution from arbitrary non-negative weights.

        The weights are normalized to sum to one. An all-zero vector is kept
        as-is; callers are expected to supply a positive sum.
        """
        values = np.asarray(list(weights), dtype=np.float64)
        if values.size == 0:
            raise InvalidDistribution("Cannot build a distribution from zero weights")
        state = cls(values.size)
        state.weights = values.copy()
        if not state.normalize():
            logger.warning(f"Degenerate weights {values.tolist()} left unnormalized")
        return state

    @classmethod
    def definite(cls, outcome: int, outcome_count: int = 2) -> "StateDistribution":
        """Distribution already collapsed to ``outcome``."""
        state = cls(outcome_count)
        state.collapse(outcome)
        return state

    def normalize(self) -> bool:
        """Rescale weights to sum to one. Returns False when the sum is not positive."""
        total = float(self.weights.sum())
        if total > 0:
            self.weights = self.weights / total
            return True
        return False

    def collapse(self, forced_outcome: Optional[int] = None,
                 rng: Optional[RandomSource] = None) -> int:
        """Collapse to a single outcome and return it.

        Re-collapsing is a no-op that returns the existing outcome. A forced
        outcome never consults the random source.
        """
        if self.collapsed:
            return self.collapsed_outcome

        if forced_outcome is not None:
            outcome = int(forced_outcome)
            if not 0 <= outcome < self.outcome_count:
                raise ValueError(
                    f"Forced outcome {outcome} outside [0, {self.outcome_count})"
                )
        else:
            outcome = self._sample(rng or default_random_source())

        self.collapsed = True
        self.collapsed_outcome = outcome
        self.weights = np.zeros(self.outcome_count, dtype=np.float64)
        self.weights[outcome] = 1.0
        logger.debug(f"Collapsed to outcome {outcome} (forced={forced_outcome is not None})")
        return outcome

    def _sample(self, rng: RandomSource) -> int:
        draw = rng()
        cumulative = 0.0
        for i in range(self.outcome_count):
            cumulative += float(self.weights[i])
            if draw < cumulative:
                return i
        # Rounding left the cumulative sum short of the draw
        return self.outcome_count - 1

    def dominant_outcome(self) -> int:
        """Most likely outcome; ties go to the lowest index."""
        if self.collapsed:
            return self.collapsed_outcome
        return int(np.argmax(self.weights))

    def is_superposed(self) -> bool:
        if self.collapsed:
            return False
        return int(np.count_nonzero(self.weights > SIGNIFICANCE_THRESHOLD)) > 1

    def probabilities(self) -> List[float]:
        return self.weights.tolist()

    def clone(self) -> "StateDistribution":
        state = StateDistribution(self.outcome_count)
        state.weights = self.weights.copy()
        state.collapsed = self.collapsed
        state.collapsed_outcome = self.collapsed_outcome
        return state

    def __repr__(self) -> str:
        if self.collapsed:
            return f"StateDistribution(collapsed={self.collapsed_outcome})"
        return f"StateDistribution(weights={np.round(self.weights, 4).tolist()})"
