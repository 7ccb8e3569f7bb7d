"""Event bus connecting a play session to its observers."""

from typing import Any, Callable, Dict, List
import logging

logger = logging.getLogger(__name__)

# Payload: MoveResult
TILE_MEASURED = "tile_measured"
# Payload: {"row": int, "col": int}
INTERFERENCE_APPLIED = "interference_applied"
# Payload: CompletionEvent
LEVEL_COMPLETED = "level_completed"


class EventBus:
    """Synchronous publish/subscribe bus.

    Subscribers run in subscription order on the publishing call stack.
    """

    def __init__(self):
        self.listeners: Dict[str, List[Callable[[Any], Any]]] = {}

    def subscribe(self, event_type: str, callback: Callable[[Any], Any]):
        self.listeners.setdefault(event_type, []).append(callback)
        logger.debug(f"Subscribed {getattr(callback, '__qualname__', callback)} to {event_type}")

    def publish(self, event_type: str, data: Any = None) -> int:
        """Deliver ``data`` to every subscriber of ``event_type``.

        A failing subscriber is logged and skipped so the remaining
        subscribers still receive the event. Returns the number of
        subscribers that handled it.
        """
        delivered = 0
        for callback in list(self.listeners.get(event_type, [])):
            try:
                callback(data)
                delivered += 1
            except Exception as e:
                logger.error(f"Subscriber to {event_type} failed: {e}")
        logger.debug(f"Published {event_type} to {delivered} subscriber(s)")
        return delivered
