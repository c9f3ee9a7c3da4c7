"""Notification channel implementations."""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import BaseModel, Field

from wayfarer.interfaces.notifications import Notifier
from wayfarer.observer.streaming import EventStream

logger = logging.getLogger(__name__)


class Notification(BaseModel):
    """A notification published on a stream."""

    text: str = Field(..., min_length=1)
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}


class LoggingNotifier(Notifier):
    """Writes notifications to the log at WARNING level."""

    def notify(self, text: str) -> None:
        logger.warning(f"[NOTIFY] {text}")


class StreamNotifier(Notifier):
    """Publishes notifications on an event stream for external delivery."""

    def __init__(self, stream: EventStream | None = None) -> None:
        self.stream = stream or EventStream("notifications", max_events=100)

    def notify(self, text: str) -> None:
        self.stream.publish(Notification(text=text))
