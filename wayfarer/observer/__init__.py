"""Observer package: outcome and encounter streams, notifiers."""

from wayfarer.observer.notifier import LoggingNotifier, Notification, StreamNotifier
from wayfarer.observer.streaming import EventStream

__all__ = ["EventStream", "LoggingNotifier", "Notification", "StreamNotifier"]
