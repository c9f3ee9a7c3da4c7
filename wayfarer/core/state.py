"""Owned, lock-guarded state shared by the goal loop and the threat loop."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from wayfarer.models.goals import QueueState
from wayfarer.models.threats import RetreatPhase, RetreatState


class SchedulerState:
    """The only cross-component mutable state of the decision core.

    Retreat bookkeeping is written by the retreat controller (threat loop)
    and read by the safety gate (goal loop). The retreat phase is derived
    from the wall clock on every read:

    - RETREATING while a retreat is in progress
    - COOLDOWN for `cooldown + settle` seconds after it completes
    - IDLE afterwards

    The `retreating` flag stays raised for the first `settle` seconds of
    the cooldown so the perception tick that triggered the retreat cannot
    immediately re-trigger it.
    """

    def __init__(
        self,
        cooldown_seconds: float = 15.0,
        settle_seconds: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cooldown = cooldown_seconds
        self._settle = settle_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._active = False
        self._completed_at: float | None = None
        self._queue = QueueState()

    @property
    def cooldown_window(self) -> float:
        """Seconds after completion during which retreat is not allowed."""
        return self._cooldown + self._settle

    def _phase(self, now: float) -> RetreatPhase:
        if self._active:
            return RetreatPhase.RETREATING
        if self._completed_at is not None and now - self._completed_at < self.cooldown_window:
            return RetreatPhase.COOLDOWN
        return RetreatPhase.IDLE

    def retreat_phase(self) -> RetreatPhase:
        with self._lock:
            return self._phase(self._clock())

    def begin_retreat(self) -> bool:
        """Enter RETREATING if currently IDLE. Returns False otherwise."""
        with self._lock:
            if self._phase(self._clock()) != RetreatPhase.IDLE:
                return False
            self._active = True
            return True

    def complete_retreat(self) -> None:
        """Leave RETREATING and start the cooldown window."""
        with self._lock:
            self._active = False
            self._completed_at = self._clock()

    def is_retreating(self) -> bool:
        """Retreat in progress or still inside the settle period."""
        with self._lock:
            return self._retreating(self._clock())

    def _retreating(self, now: float) -> bool:
        if self._active:
            return True
        return self._completed_at is not None and now - self._completed_at < self._settle

    def retreat_snapshot(self) -> RetreatState:
        """Read-only copy of the retreat state."""
        with self._lock:
            now = self._clock()
            return RetreatState(
                phase=self._phase(now),
                retreating=self._retreating(now),
                last_retreat_time=self._completed_at,
            )

    def set_queue_state(self, queue: QueueState) -> None:
        with self._lock:
            self._queue = queue

    def queue_snapshot(self) -> QueueState:
        with self._lock:
            return self._queue
