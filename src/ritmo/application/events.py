"""
Per-engine publisher for outbound events.

Each engine owns its own dispatcher; there is no process-wide event bus.
"""

import logging
from collections.abc import Callable

from ritmo.domain.events import EngineEvent

logger = logging.getLogger(__name__)

Listener = Callable[[EngineEvent], None]


class EventDispatcher:
    """
    Delivers events to subscribed listeners in subscription order.

    Listener errors propagate to the caller.
    """

    def __init__(self, listeners: list[Listener] | None = None):
        self._listeners: list[Listener] = list(listeners or [])
        self.published: list[EngineEvent] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def publish(self, event: EngineEvent) -> None:
        logger.debug(f"Publishing {event}")
        self.published.append(event)
        for listener in self._listeners:
            listener(event)

    def drain(self) -> list[EngineEvent]:
        """Return and forget the events published so far."""
        events, self.published = self.published, []
        return events
