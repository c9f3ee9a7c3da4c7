"""Metrics collection for the scheduler loops.

Tracks:
- goal tick and threat tick timing
- goal dispatches, successes, failures and transient noise
- safety-gate blocks, retreats and engagements
- decision routing by source (local, cache, advisory)
- errors by class and escalations

Example:
    >>> from wayfarer.core.metrics import MetricsCollector
    >>>
    >>> metrics = MetricsCollector()
    >>> metrics.start()
    >>> metrics.record_dispatch("mine_resources", success=True, duration_ms=120.0)
    >>> metrics.get_metrics().dispatch_success_rate
    1.0
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class AgentMetrics(BaseModel):
    """Immutable snapshot of the collected metrics.

    Attributes:
        goal_ticks: Goal ticks run (including blocked ones).
        threat_ticks: Threat ticks run.
        avg_goal_tick_ms: Average goal tick duration.
        avg_threat_tick_ms: Average threat tick duration.
        avg_dispatch_ms: Average goal dispatch duration.
        dispatches_total: Goals dispatched.
        dispatches_successful: Dispatches that succeeded.
        dispatches_failed: Dispatches counted as failures.
        dispatches_transient: Dispatches interrupted by transient noise.
        safety_blocks: Goal ticks skipped by the safety gate.
        retreats: Retreats attempted.
        engagements: Engagements attempted.
        engagements_won: Engagements that succeeded.
        routes_by_source: Recommendations by source.
        errors_total: Errors recorded.
        errors_by_type: Count of errors by class.
        escalations: Escalation notifications sent.
        current_goal: Goal currently or last dispatched.
        threat_level: Most recent threat level.
        started_at: When collection started.
        uptime_seconds: Seconds since start.
    """

    goal_ticks: int = Field(default=0, ge=0)
    threat_ticks: int = Field(default=0, ge=0)
    avg_goal_tick_ms: float = Field(default=0.0, ge=0.0)
    avg_threat_tick_ms: float = Field(default=0.0, ge=0.0)
    avg_dispatch_ms: float = Field(default=0.0, ge=0.0)

    dispatches_total: int = Field(default=0, ge=0)
    dispatches_successful: int = Field(default=0, ge=0)
    dispatches_failed: int = Field(default=0, ge=0)
    dispatches_transient: int = Field(default=0, ge=0)

    safety_blocks: int = Field(default=0, ge=0)
    retreats: int = Field(default=0, ge=0)
    engagements: int = Field(default=0, ge=0)
    engagements_won: int = Field(default=0, ge=0)

    routes_by_source: dict[str, int] = Field(default_factory=dict)

    errors_total: int = Field(default=0, ge=0)
    errors_by_type: dict[str, int] = Field(default_factory=dict)
    escalations: int = Field(default=0, ge=0)

    current_goal: str = Field(default="")
    threat_level: str = Field(default="safe")

    started_at: datetime | None = Field(default=None)
    uptime_seconds: float = Field(default=0.0, ge=0.0)

    model_config = {"frozen": True}

    @property
    def dispatch_success_rate(self) -> float:
        """Successful dispatches over counted dispatches (0.0 to 1.0)."""
        counted = self.dispatches_successful + self.dispatches_failed
        if counted == 0:
            return 0.0
        return self.dispatches_successful / counted


@dataclass
class _TimingStats:
    """Running total and count for one timer."""

    total_ms: float = 0.0
    count: int = 0

    def record(self, duration_ms: float) -> None:
        self.total_ms += duration_ms
        self.count += 1

    @property
    def average_ms(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_ms / self.count


class MetricsCollector:
    """Thread-safe metrics sink shared by both scheduler loops."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._init_counters()
        logger.debug("MetricsCollector initialized")

    def _init_counters(self) -> None:
        self._goal_tick_timing = _TimingStats()
        self._threat_tick_timing = _TimingStats()
        self._dispatch_timing = _TimingStats()
        self._dispatches_successful = 0
        self._dispatches_failed = 0
        self._dispatches_transient = 0
        self._safety_blocks = 0
        self._retreats = 0
        self._engagements = 0
        self._engagements_won = 0
        self._routes: dict[str, int] = {}
        self._errors_by_type: dict[str, int] = {}
        self._escalations = 0
        self._current_goal = ""
        self._threat_level = "safe"
        self._started_at: datetime | None = None

    def start(self) -> None:
        """Mark the start of metrics collection."""
        with self._lock:
            self._started_at = datetime.now()

    def reset(self) -> None:
        """Reset all metrics to initial state."""
        with self._lock:
            self._init_counters()
        logger.debug("Metrics reset")

    def record_goal_tick(self, duration_ms: float, blocked: bool = False) -> None:
        with self._lock:
            self._goal_tick_timing.record(duration_ms)
            if blocked:
                self._safety_blocks += 1

    def record_threat_tick(self, duration_ms: float, level: str) -> None:
        with self._lock:
            self._threat_tick_timing.record(duration_ms)
            self._threat_level = level

    def record_dispatch(
        self,
        goal: str,
        success: bool,
        duration_ms: float,
        transient: bool = False,
    ) -> None:
        """Record a goal dispatch.

        Args:
            goal: Goal identity.
            success: Whether the goal succeeded.
            duration_ms: Dispatch duration in milliseconds.
            transient: Failure was transient noise (not counted as failed).
        """
        with self._lock:
            self._dispatch_timing.record(duration_ms)
            self._current_goal = goal
            if success:
                self._dispatches_successful += 1
            elif transient:
                self._dispatches_transient += 1
            else:
                self._dispatches_failed += 1

    def record_retreat(self) -> None:
        with self._lock:
            self._retreats += 1

    def record_engagement(self, won: bool) -> None:
        with self._lock:
            self._engagements += 1
            if won:
                self._engagements_won += 1

    def record_route(self, source: str) -> None:
        """Count a routed recommendation by source."""
        with self._lock:
            self._routes[source] = self._routes.get(source, 0) + 1

    def record_error(self, error_type: str) -> None:
        with self._lock:
            self._errors_by_type[error_type] = self._errors_by_type.get(error_type, 0) + 1

    def record_escalation(self) -> None:
        with self._lock:
            self._escalations += 1

    def set_goal(self, goal: str) -> None:
        with self._lock:
            self._current_goal = goal

    @contextmanager
    def time_goal_tick(self) -> Iterator[None]:
        """Time a goal tick that was not blocked."""
        start = time.time()
        try:
            yield
        finally:
            self.record_goal_tick((time.time() - start) * 1000)

    def get_metrics(self) -> AgentMetrics:
        """Get a snapshot of all current metrics."""
        with self._lock:
            uptime = 0.0
            if self._started_at is not None:
                uptime = (datetime.now() - self._started_at).total_seconds()

            return AgentMetrics(
                goal_ticks=self._goal_tick_timing.count,
                threat_ticks=self._threat_tick_timing.count,
                avg_goal_tick_ms=self._goal_tick_timing.average_ms,
                avg_threat_tick_ms=self._threat_tick_timing.average_ms,
                avg_dispatch_ms=self._dispatch_timing.average_ms,
                dispatches_total=self._dispatch_timing.count,
                dispatches_successful=self._dispatches_successful,
                dispatches_failed=self._dispatches_failed,
                dispatches_transient=self._dispatches_transient,
                safety_blocks=self._safety_blocks,
                retreats=self._retreats,
                engagements=self._engagements,
                engagements_won=self._engagements_won,
                routes_by_source=dict(self._routes),
                errors_total=sum(self._errors_by_type.values()),
                errors_by_type=dict(self._errors_by_type),
                escalations=self._escalations,
                current_goal=self._current_goal,
                threat_level=self._threat_level,
                started_at=self._started_at,
                uptime_seconds=uptime,
            )
