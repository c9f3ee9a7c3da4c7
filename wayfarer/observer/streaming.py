"""Bounded event streams for outcome and threat-encounter delivery."""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_MAX_EVENTS = 500

EventCallback = Callable[[BaseModel], None]


class EventStream:
    """Thread-safe, bounded, id-ordered stream of model events.

    Producers call `publish()`. Consumers either poll with
    `get_events_since()` or register a callback with `subscribe()`.
    Callback errors are logged and never reach the producer.
    """

    def __init__(self, name: str, max_events: int = DEFAULT_MAX_EVENTS) -> None:
        self._name = name
        self._max_events = max(1, max_events)
        self._lock = threading.Lock()
        self._events: deque[dict[str, Any]] = deque(maxlen=self._max_events)
        self._next_id = 1
        self._subscribers: list[EventCallback] = []

    @property
    def name(self) -> str:
        return self._name

    def publish(self, event: BaseModel) -> int:
        """Append an event and return its assigned id."""
        with self._lock:
            event_id = self._next_id
            self._next_id += 1
            self._events.append(
                {
                    "id": event_id,
                    "timestamp": datetime.now().isoformat(),
                    "payload": event.model_dump(mode="json"),
                }
            )
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"{self._name} subscriber error: {e}")
        return event_id

    def subscribe(self, callback: EventCallback) -> None:
        """Register a callback invoked with every published event."""
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: EventCallback) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def get_events_since(self, last_event_id: int) -> list[dict[str, Any]]:
        """Get events with id greater than `last_event_id`."""
        with self._lock:
            return [event for event in self._events if int(event["id"]) > last_event_id]

    def latest(self, limit: int = 10) -> list[dict[str, Any]]:
        """Most recent events, oldest first."""
        with self._lock:
            events = list(self._events)
        return events[-limit:] if limit > 0 else []

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
