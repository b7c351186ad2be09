"""Notifications emitted on state transitions.

Status tools and auto-maintenance daemons subscribe here instead of
re-deriving state. Handlers run synchronously after the records of an
operation are written; a failing handler is logged and skipped so it can
neither undo nor block the operation.

Usage:
    bus = EventBus()
    bus.subscribe(lambda event: print(event.type, event.identity))
    bus.subscribe(on_decay, EventType.CREDENTIAL_DECAYED)
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .enums import EventType

logger = logging.getLogger(__name__)

EventHandler = Callable[["ProtocolEvent"], Any]


@dataclass(frozen=True)
class ProtocolEvent:
    """A single notification."""

    type: EventType
    identity: str
    sequence_number: int
    timestamp: int
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "identity": self.identity,
            "sequence_number": self.sequence_number,
            "timestamp": self.timestamp,
            "data": dict(self.data),
        }


class EventBus:
    """Synchronous publish/subscribe with a bounded history.

    Args:
        history_size: Number of recent events retained for polling.
    """

    def __init__(self, history_size: int = 1000) -> None:
        self._handlers: list[tuple[EventType | None, EventHandler]] = []
        self._history: deque[ProtocolEvent] = deque(maxlen=history_size)
        self._lock = threading.Lock()

    def subscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        """Register a handler for one event type, or for all when None."""
        with self._lock:
            self._handlers.append((event_type, handler))

    def unsubscribe(self, handler: EventHandler) -> None:
        with self._lock:
            self._handlers = [(t, h) for t, h in self._handlers if h != handler]

    def emit(self, event: ProtocolEvent) -> None:
        with self._lock:
            self._history.append(event)
            handlers = [h for t, h in self._handlers if t is None or t == event.type]

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Event handler failed for {event.type.value}")

    def history(self, identity: str | None = None, event_type: EventType | None = None) -> list[ProtocolEvent]:
        """Recent events, oldest first, optionally filtered."""
        with self._lock:
            events = list(self._history)
        if identity is not None:
            events = [e for e in events if e.identity == identity]
        if event_type is not None:
            events = [e for e in events if e.type == event_type]
        return events

    def clear(self) -> None:
        with self._lock:
            self._history.clear()
