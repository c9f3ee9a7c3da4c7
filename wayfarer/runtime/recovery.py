"""Error classification and escalation of repeated failures."""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from wayfarer.interfaces.advisory import AdvisoryError
from wayfarer.interfaces.notifications import Notifier
from wayfarer.interfaces.world import NavigationTimeout, WorldInteractionError

logger = logging.getLogger(__name__)

DEFAULT_ESCALATION_THRESHOLD = 5
MAX_ERROR_LOG = 100


class ErrorClass(StrEnum):
    """Typed failure classes used for counting and escalation."""

    PATHFINDING = "pathfinding"
    INVENTORY = "inventory"
    CRAFTING = "crafting"
    COMBAT = "combat"
    CONNECTION = "connection"
    RESOURCE_NOT_FOUND = "resource_not_found"
    ADVISORY = "advisory"
    PROTOCOL = "protocol"
    UNKNOWN = "unknown"


class ErrorRecord(BaseModel):
    """One handled error."""

    error_class: ErrorClass = Field(...)
    error_type: str = Field(..., description="Exception class name")
    message: str = Field(default="")
    context: str = Field(default="", description="Where the error surfaced")
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}


def classify_error(error: BaseException) -> ErrorClass:
    """Classify an exception into an error class."""
    if isinstance(error, NavigationTimeout):
        return ErrorClass.PATHFINDING
    if isinstance(error, AdvisoryError):
        return ErrorClass.ADVISORY
    if isinstance(error, WorldInteractionError) and error.transient:
        return ErrorClass.PROTOCOL
    if isinstance(error, ConnectionError):
        return ErrorClass.CONNECTION

    message = str(error).lower()

    if any(token in message for token in ("pathfind", "path", "navigat", "unreachable")):
        return ErrorClass.PATHFINDING
    if any(token in message for token in ("inventory", "full")):
        return ErrorClass.INVENTORY
    if "craft" in message:
        return ErrorClass.CRAFTING
    if any(token in message for token in ("combat", "attack")):
        return ErrorClass.COMBAT
    if any(token in message for token in ("connection", "disconnect")):
        return ErrorClass.CONNECTION
    if any(token in message for token in ("not found", "cannot find")):
        return ErrorClass.RESOURCE_NOT_FOUND
    if any(token in message for token in ("advisory", "llm", "openai", "anthropic")):
        return ErrorClass.ADVISORY
    if "protocol" in message:
        return ErrorClass.PROTOCOL
    return ErrorClass.UNKNOWN


class ErrorEscalator:
    """Counts errors per class and escalates each class once.

    When a class reaches the threshold a single notification is sent; the
    error itself is never re-raised. Only `reset()` re-arms escalation.
    """

    def __init__(
        self,
        notifier: Notifier | None = None,
        threshold: int = DEFAULT_ESCALATION_THRESHOLD,
    ) -> None:
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self._notifier = notifier
        self._threshold = threshold
        self._lock = threading.Lock()
        self._counts: dict[ErrorClass, int] = {}
        self._escalated: set[ErrorClass] = set()
        self._log: deque[ErrorRecord] = deque(maxlen=MAX_ERROR_LOG)

    @property
    def threshold(self) -> int:
        return self._threshold

    def handle(self, error: BaseException, context: str = "") -> ErrorClass:
        """Record an error and escalate if its class just reached the threshold.

        Returns:
            The class the error was counted under.
        """
        error_class = classify_error(error)
        record = ErrorRecord(
            error_class=error_class,
            error_type=type(error).__name__,
            message=str(error),
            context=context,
        )
        with self._lock:
            self._log.append(record)
            count = self._counts.get(error_class, 0) + 1
            self._counts[error_class] = count
            escalate = count >= self._threshold and error_class not in self._escalated
            if escalate:
                self._escalated.add(error_class)

        logger.warning(
            "[ESCALATE] %s error #%s in %s: %s",
            error_class.value,
            count,
            context or "unknown",
            error,
        )
        if escalate:
            self._notify(
                f"CRITICAL: {error_class.value} errors reached {count} "
                f"(latest: {type(error).__name__}: {error})"
            )
        return error_class

    def _notify(self, text: str) -> None:
        logger.error(f"[ESCALATE] {text}")
        if self._notifier is None:
            return
        try:
            self._notifier.notify(text)
        except Exception as e:
            logger.warning(f"[ESCALATE] Notifier failed: {e}")

    def count(self, error_class: ErrorClass) -> int:
        with self._lock:
            return self._counts.get(error_class, 0)

    def escalated_classes(self) -> set[ErrorClass]:
        with self._lock:
            return set(self._escalated)

    def recent_errors(self, limit: int = 10) -> list[ErrorRecord]:
        with self._lock:
            records = list(self._log)
        return records[-limit:] if limit > 0 else []

    def stats(self) -> dict[str, object]:
        """Totals, top classes and escalated classes."""
        with self._lock:
            top = sorted(self._counts.items(), key=lambda item: item[1], reverse=True)[:5]
            return {
                "total_errors": sum(self._counts.values()),
                "top_errors": [{"type": cls.value, "count": n} for cls, n in top],
                "escalated": sorted(cls.value for cls in self._escalated),
            }

    def report(self) -> str:
        """Send and return a summary of the session's errors."""
        stats = self.stats()
        if not stats["total_errors"]:
            text = "No errors in this session"
        else:
            lines = [f"Error report: {stats['total_errors']} total"]
            if stats["escalated"]:
                lines.append(f"Critical: {', '.join(stats['escalated'])}")
            for entry in stats["top_errors"]:
                lines.append(f"- {entry['type']}: {entry['count']}")
            text = "\n".join(lines)
        if self._notifier is not None:
            try:
                self._notifier.notify(text)
            except Exception as e:
                logger.warning(f"[ESCALATE] Notifier failed: {e}")
        return text

    def reset(self) -> None:
        """Clear counts, the error log and escalation flags."""
        with self._lock:
            self._counts.clear()
            self._escalated.clear()
            self._log.clear()
