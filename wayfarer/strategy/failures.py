"""Per-goal consecutive failure bookkeeping."""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONSECUTIVE_FAILURES = 2


class FailureTracker:
    """Maps goal identity to its consecutive failure count.

    A goal whose count reaches `max_consecutive_failures` is capped and is
    excluded from selection until it succeeds or the whole table is reset.
    Safe to share between the goal loop and status readers.
    """

    def __init__(self, max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES) -> None:
        if max_consecutive_failures < 1:
            raise ValueError("max_consecutive_failures must be >= 1")
        self._max = max_consecutive_failures
        self._failures: dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def max_consecutive_failures(self) -> int:
        return self._max

    def record_success(self, identity: str) -> None:
        """Clear the counter for a goal."""
        with self._lock:
            previous = self._failures.pop(identity, 0)
        if previous:
            logger.debug(f"[GOAL] Cleared {previous} failure(s) for {identity}")

    def record_failure(self, identity: str) -> int:
        """Increment the counter for a goal and return the new count."""
        with self._lock:
            count = self._failures.get(identity, 0) + 1
            self._failures[identity] = count
        if count == self._max:
            logger.info(f"[GOAL] {identity} capped after {count} consecutive failures")
        return count

    def failure_count(self, identity: str) -> int:
        with self._lock:
            return self._failures.get(identity, 0)

    def is_capped(self, identity: str) -> bool:
        """Check whether a goal has reached the failure cap."""
        return self.failure_count(identity) >= self._max

    def reset(self) -> None:
        """Forget every failure (global amnesty)."""
        with self._lock:
            cleared = len(self._failures)
            self._failures.clear()
        logger.info(f"[GOAL] Failure table reset ({cleared} entries cleared)")

    def snapshot(self) -> dict[str, int]:
        """Copy of the current counters."""
        with self._lock:
            return dict(self._failures)
