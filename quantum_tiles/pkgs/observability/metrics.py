"""Metrics collection and seed management."""

import hashlib
import time
from typing import Any, Dict

import numpy as np

from ..tile_engine.state import RandomSource


class SeedManager:
    """Centralized seed management for deterministic play."""

    def __init__(self, global_seed: int = 0):
        self.global_seed = global_seed
        self.component_seeds: Dict[str, int] = {}

    def get_component_seed(self, component: str) -> int:
        """Deterministic seed for a named component."""
        if component not in self.component_seeds:
            seed_str = f"{self.global_seed}_{component}"
            hash_obj = hashlib.md5(seed_str.encode())
            self.component_seeds[component] = int(hash_obj.hexdigest()[:8], 16) % (2**31)
        return self.component_seeds[component]

    def generator(self, component: str) -> np.random.Generator:
        """Fresh generator for a component, reset to its seed."""
        return np.random.default_rng(self.get_component_seed(component))

    def random_source(self, component: str) -> RandomSource:
        """Uniform [0, 1) draws for a component."""
        return self.generator(component).random


class MetricsCollector:
    """Centralized metrics collection and aggregation."""

    def __init__(self):
        self.metrics: Dict[str, Any] = {}
        self.counters: Dict[str, int] = {}
        self.timers: Dict[str, float] = {}
        self.start_times: Dict[str, float] = {}

    def set_metric(self, name: str, value: Any):
        self.metrics[name] = value

    def increment_counter(self, name: str, delta: int = 1):
        self.counters[name] = self.counters.get(name, 0) + delta

    def start_timer(self, name: str):
        self.start_times[name] = time.time()

    def elapsed(self, name: str) -> float:
        """Seconds since a running timer started, or its recorded duration."""
        if name in self.start_times:
            return time.time() - self.start_times[name]
        return self.timers.get(name, 0.0)

    def stop_timer(self, name: str) -> float:
        """Stop a timer and record its duration."""
        if name in self.start_times:
            duration = time.time() - self.start_times.pop(name)
            self.timers[name] = duration
            return duration
        return 0.0

    def get_all_metrics(self) -> Dict[str, Any]:
        """Copy of every metric; running timers report their elapsed time so far."""
        timers = self.timers.copy()
        for name in self.start_times:
            timers[name] = self.elapsed(name)
        return {
            "metrics": self.metrics.copy(),
            "counters": self.counters.copy(),
            "timers": timers
        }

    def reset(self):
        self.metrics.clear()
        self.counters.clear()
        self.timers.clear()
        self.start_times.clear()
