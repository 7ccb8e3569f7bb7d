"""Observability infrastructure for logging, metrics, and events."""

from .logging import setup_logging
from .metrics import MetricsCollector, SeedManager
from .events import EventBus, TILE_MEASURED, INTERFERENCE_APPLIED, LEVEL_COMPLETED

__all__ = [
    'setup_logging',
    'MetricsCollector', 'SeedManager',
    'EventBus', 'TILE_MEASURED', 'INTERFERENCE_APPLIED', 'LEVEL_COMPLETED'
]
