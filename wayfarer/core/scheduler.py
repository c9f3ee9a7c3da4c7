"""Goal scheduler: the orchestrator of the decision core.

Runs two named periodic tasks on their own threads:

- ``goal-tick`` (default every 5s): safety check, goal selection,
  optional advisory routing, dispatch, outcome recording
- ``threat-tick`` (default every 3s): threat scan, preemptive retreat
  or engagement

The two loops only share `SchedulerState` (retreat bookkeeping and the
queue snapshot), the failure tracker and the threat assessor, each of which
guards itself with a lock. A dispatched goal runs to completion; a threat
that appears mid-action only blocks the next goal tick.

Example:
    >>> scheduler = GoalScheduler(perception=world, world=world, config=load_config())
    >>> scheduler.start()
    >>> # ... later ...
    >>> scheduler.stop()

`run_goal_tick()` and `run_threat_tick()` step the loops by hand for tests
and the CLI.
"""

from __future__ import annotations

import logging
import random
import signal
import threading
import time
from collections.abc import Callable
from enum import StrEnum

from wayfarer.config.loader import Config
from wayfarer.core.metrics import MetricsCollector
from wayfarer.core.router import DecisionRouter
from wayfarer.core.state import SchedulerState
from wayfarer.interfaces.advisory import AdvisoryService
from wayfarer.interfaces.notifications import Notifier
from wayfarer.interfaces.world import (
    NavigationTimeout,
    Perception,
    WayfarerError,
    WorldInteraction,
    WorldInteractionError,
)
from wayfarer.models.decisions import AIRecommendation, DecisionContext
from wayfarer.models.goals import Goal, GoalOutcome, QueueState
from wayfarer.models.threats import RetreatState, ThreatSituation
from wayfarer.models.world import WorldSnapshot
from wayfarer.observer.streaming import EventStream
from wayfarer.runtime.recovery import ErrorEscalator
from wayfarer.strategy.failures import FailureTracker
from wayfarer.strategy.goals import GoalGenerator, apply_recommendation
from wayfarer.strategy.handlers import GoalHandlers
from wayfarer.threat.assessor import ThreatAssessor
from wayfarer.threat.retreat import RetreatController

logger = logging.getLogger(__name__)


class SchedulerError(WayfarerError):
    """Error raised for invalid scheduler lifecycle transitions."""

    pass


class LoopState(StrEnum):
    """Lifecycle states of the scheduler."""

    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPING = "stopping"


class GoalScheduler:
    """Ties threat assessment, retreat control, goal selection and dispatch together.

    Attributes:
        outcome_stream: Receives a `GoalOutcome` after every dispatch.
        encounter_stream: Receives a `ThreatEncounter` for every concluded encounter.
    """

    def __init__(
        self,
        perception: Perception,
        world: WorldInteraction,
        config: Config | None = None,
        advisory: AdvisoryService | None = None,
        notifier: Notifier | None = None,
        metrics: MetricsCollector | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], object] | None = None,
        enable_signal_handlers: bool = True,
    ) -> None:
        """Assemble the decision core.

        Args:
            perception: Read-only view of the agent and its surroundings.
            world: World-interaction capability.
            config: Full configuration. Uses defaults if None.
            advisory: Optional advisory service consulted by the router.
            notifier: Optional channel for escalations.
            metrics: Metrics collector. Creates a new one if None.
            rng: Random source for goal generation. Seeded from config if None.
            clock: Wall-clock source in seconds for cooldowns, zones and caches.
            sleep: Wait used while healing after a retreat. A truthy return
                aborts the wait. Defaults to waiting on the stop event.
            enable_signal_handlers: Install SIGINT/SIGTERM handlers on start.
        """
        self._config = config or Config()
        self._perception = perception
        self._clock = clock
        self._enable_signal_handlers = enable_signal_handlers
        self._metrics = metrics or MetricsCollector()
        rng = rng or random.Random(self._config.goals.seed)

        cfg = self._config
        self._stop_event = threading.Event()
        self.outcome_stream = EventStream("goal-outcomes")
        self.encounter_stream = EventStream("threat-encounters")

        self._state = SchedulerState(
            cooldown_seconds=cfg.retreat.cooldown_seconds,
            settle_seconds=cfg.retreat.settle_seconds,
            clock=clock,
        )
        self._tracker = FailureTracker(cfg.scheduler.max_consecutive_failures)
        self._generator = GoalGenerator(
            config=cfg.goals,
            tracker=self._tracker,
            rng=rng,
            max_generation_resets=cfg.scheduler.max_generation_resets,
        )
        self._handlers = GoalHandlers(
            world, perception, config=cfg.navigation, action_ids=cfg.goals.action_ids, rng=rng
        )
        self._assessor = ThreatAssessor(
            cfg.threat, clock=clock, encounter_stream=self.encounter_stream
        )
        self._retreat = RetreatController(
            world,
            perception,
            self._assessor,
            self._state,
            config=cfg.retreat,
            navigation=cfg.navigation,
            sleep=sleep or self._stop_event.wait,
        )
        self._router = DecisionRouter(
            advisory, config=cfg.advisory, metrics=self._metrics, clock=clock
        )
        self._escalator = ErrorEscalator(notifier, threshold=cfg.scheduler.error_escalation_threshold)

        self._loop_state = LoopState.STOPPED
        self._state_lock = threading.Lock()
        self._threads: list[threading.Thread] = []
        self._goal_tick_count = 0

        self._on_state_change: Callable[[LoopState], None] | None = None
        self._on_error: Callable[[BaseException], None] | None = None

        logger.debug(
            f"GoalScheduler initialized: goal_tick={cfg.scheduler.goal_tick_seconds}s, "
            f"threat_tick={cfg.scheduler.threat_tick_seconds}s, "
            f"advisory={'on' if advisory is not None else 'off'}"
        )

    # --- components ---

    @property
    def config(self) -> Config:
        return self._config

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def tracker(self) -> FailureTracker:
        return self._tracker

    @property
    def generator(self) -> GoalGenerator:
        return self._generator

    @property
    def assessor(self) -> ThreatAssessor:
        return self._assessor

    @property
    def retreat_controller(self) -> RetreatController:
        return self._retreat

    @property
    def router(self) -> DecisionRouter:
        return self._router

    @property
    def escalator(self) -> ErrorEscalator:
        return self._escalator

    # --- status queries ---

    def get_queue_state(self) -> QueueState:
        return self._state.queue_snapshot()

    def get_threat_situation(self) -> ThreatSituation:
        return self._assessor.last_situation

    def get_retreat_state(self) -> RetreatState:
        return self._state.retreat_snapshot()

    # --- lifecycle ---

    @property
    def state(self) -> LoopState:
        with self._state_lock:
            return self._loop_state

    def set_callbacks(
        self,
        on_state_change: Callable[[LoopState], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        """Set optional callbacks.

        Args:
            on_state_change: Called when the lifecycle state changes.
            on_error: Called with every error the loops absorb.
        """
        self._on_state_change = on_state_change
        self._on_error = on_error

    def _set_state(self, new_state: LoopState) -> None:
        with self._state_lock:
            old_state = self._loop_state
            self._loop_state = new_state

        if old_state != new_state:
            logger.info(f"Scheduler state: {old_state.value} -> {new_state.value}")
            if self._on_state_change:
                try:
                    self._on_state_change(new_state)
                except Exception as e:
                    logger.warning(f"State change callback error: {e}")

    def start(self, blocking: bool = False) -> None:
        """Start both tick loops.

        Args:
            blocking: Run the goal loop in the calling thread until stopped.

        Raises:
            SchedulerError: If the scheduler is already running.
        """
        if self.state in (LoopState.RUNNING, LoopState.PAUSED, LoopState.STOPPING):
            raise SchedulerError(f"Scheduler is already {self.state.value}")

        if self._enable_signal_handlers:
            self._install_signal_handlers()

        self._stop_event.clear()
        self._metrics.start()
        self._set_state(LoopState.RUNNING)

        sched = self._config.scheduler
        threat_thread = threading.Thread(
            target=self._ticker,
            args=(sched.threat_tick_seconds, self.run_threat_tick),
            name="threat-tick",
            daemon=True,
        )
        self._threads = [threat_thread]
        threat_thread.start()

        if blocking:
            logger.info("[BOOT] Scheduler running in foreground")
            self._ticker(sched.goal_tick_seconds, self.run_goal_tick)
            self.stop()
        else:
            goal_thread = threading.Thread(
                target=self._ticker,
                args=(sched.goal_tick_seconds, self.run_goal_tick),
                name="goal-tick",
                daemon=True,
            )
            self._threads.append(goal_thread)
            goal_thread.start()
            logger.info("[BOOT] Scheduler started in background threads")

    def request_stop(self) -> None:
        """Signal both loops to exit after their current tick."""
        if self.state in (LoopState.RUNNING, LoopState.PAUSED):
            self._set_state(LoopState.STOPPING)
        self._stop_event.set()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop both loops and wait for them to exit.

        Args:
            timeout: Maximum seconds to wait for each thread.
        """
        if self.state == LoopState.STOPPED:
            return

        self.request_stop()
        current = threading.current_thread()
        for thread in self._threads:
            if thread is current or not thread.is_alive():
                continue
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"{thread.name} did not stop within timeout")
        self._threads = []
        self._router.shutdown()
        self._set_state(LoopState.STOPPED)
        logger.info("Scheduler stopped")

    def pause(self) -> None:
        """Skip ticks until resumed. The tick in progress completes."""
        if self.state == LoopState.RUNNING:
            self._set_state(LoopState.PAUSED)

    def resume(self) -> None:
        if self.state == LoopState.PAUSED:
            self._set_state(LoopState.RUNNING)

    def _install_signal_handlers(self) -> None:
        def signal_handler(signum: int, _frame: object) -> None:
            logger.info(f"Received {signal.Signals(signum).name}, stopping scheduler...")
            self.request_stop()

        try:
            signal.signal(signal.SIGINT, signal_handler)
            signal.signal(signal.SIGTERM, signal_handler)
            logger.debug("Signal handlers installed")
        except ValueError:
            # Can only set handlers in main thread
            logger.debug("Could not install signal handlers (not main thread)")

    def _ticker(self, interval: float, tick: Callable[[], object]) -> None:
        name = threading.current_thread().name
        logger.debug(f"{name} loop running every {interval}s")
        while not self._stop_event.is_set():
            if self.state == LoopState.RUNNING:
                tick()
            self._stop_event.wait(interval)
        logger.debug(f"{name} loop exited")

    # --- error handling ---

    def _absorb(self, error: BaseException, context: str) -> None:
        """Count, classify and possibly escalate an error. Never re-raises."""
        already_escalated = self._escalator.escalated_classes()
        error_class = self._escalator.handle(error, context=context)
        self._metrics.record_error(error_class.value)
        if error_class in self._escalator.escalated_classes() - already_escalated:
            self._metrics.record_escalation()
        if self._on_error:
            try:
                self._on_error(error)
            except Exception as e:
                logger.warning(f"Error callback error: {e}")

    # --- goal tick ---

    def observe(self) -> WorldSnapshot:
        """Build a world snapshot from perception."""
        return WorldSnapshot(
            health=self._perception.current_health(),
            food=self._perception.current_food(),
            max_health=self._config.retreat.max_health,
            position=self._perception.current_position(),
            time_of_day=self._perception.time_of_day(),
            inventory=self._perception.inventory_summary(),
            entities=self._perception.nearby_entities(),
        )

    def _safety_blocks(self) -> bool:
        if self._state.is_retreating():
            logger.info("[GOAL] Safety gate: retreat in progress, skipping dispatch")
            return True
        if self._assessor.last_situation.should_retreat:
            logger.info("[GOAL] Safety gate: threat situation requires retreat, skipping dispatch")
            return True
        return False

    def run_goal_tick(self) -> GoalOutcome | None:
        """Run one goal tick.

        Returns:
            The dispatch outcome, or None when the safety gate blocked the
            tick or perception failed.
        """
        started = time.time()
        self._goal_tick_count += 1
        tick = self._goal_tick_count

        if self._safety_blocks():
            self._state.set_queue_state(
                self._state.queue_snapshot().model_copy(
                    update={"tick": tick, "current_goal": None, "blocked_by_safety": True}
                )
            )
            self._metrics.record_goal_tick((time.time() - started) * 1000, blocked=True)
            return None

        with self._metrics.time_goal_tick():
            try:
                world = self.observe()
            except Exception as e:
                logger.warning(f"[GOAL] Perception failed: {e}")
                self._absorb(e, "perception")
                return None

            ranked = self._generator.select_candidates(world)
            ranked = apply_recommendation(ranked, self._consult_router(world, ranked, tick))
            goal = ranked[0]

            previous = self._state.queue_snapshot()
            self._state.set_queue_state(
                QueueState(
                    tick=tick,
                    current_goal=goal.identity,
                    last_goal=previous.last_goal,
                    candidates=[g.identity for g in ranked],
                    failure_counts=self._tracker.snapshot(),
                )
            )
            self._metrics.set_goal(goal.identity)

            outcome = self._dispatch(goal)

            self._state.set_queue_state(
                QueueState(
                    tick=tick,
                    current_goal=None,
                    last_goal=goal.identity,
                    candidates=[g.identity for g in ranked],
                    failure_counts=self._tracker.snapshot(),
                )
            )
        self.outcome_stream.publish(outcome)
        return outcome

    def _consult_router(
        self, world: WorldSnapshot, ranked: list[Goal], tick: int
    ) -> AIRecommendation | None:
        """Ask the router on its throttled cadence; None on other ticks."""
        if not self._router.has_advisory:
            return None
        if (tick - 1) % self._config.scheduler.advisory_interval_ticks != 0:
            return None
        context = DecisionContext.from_state(world, ranked, self._assessor.last_situation)
        try:
            return self._router.route(context)
        except Exception as e:
            logger.warning(f"[ROUTER] Routing failed, using local ranking: {e}")
            self._absorb(e, "router")
            return None

    def _dispatch(self, goal: Goal) -> GoalOutcome:
        """Dispatch a goal and feed the result back to the failure tracker."""
        logger.info(f"[GOAL] Dispatching {goal.identity} (priority {int(goal.priority)})")
        started = time.time()
        success = False
        transient = False
        error: BaseException | None = None

        try:
            result = self._handlers.dispatch(goal)
            success = result is not False
        except WorldInteractionError as e:
            error = e
            transient = e.transient
        except Exception as e:
            error = e

        duration_ms = (time.time() - started) * 1000

        if success:
            self._tracker.record_success(goal.identity)
            logger.info(f"[GOAL] {goal.identity} succeeded in {duration_ms:.0f}ms")
        elif transient:
            logger.debug(f"[GOAL] {goal.identity} hit transient noise, not counted: {error}")
        else:
            count = self._tracker.record_failure(goal.identity)
            logger.warning(
                f"[GOAL] {goal.identity} failed ({count} consecutive)"
                + (f": {error}" if error is not None else "")
            )
            if error is not None and not isinstance(error, NavigationTimeout):
                self._absorb(error, goal.identity)

        self._metrics.record_dispatch(
            goal.identity, success=success, duration_ms=duration_ms, transient=transient
        )
        return GoalOutcome(
            goal_identity=goal.identity,
            success=success,
            duration_ms=duration_ms,
            reward=goal.expected_utility if success else 0.0,
            transient=transient,
            error=f"{type(error).__name__}: {error}" if error is not None else None,
        )

    # --- threat tick ---

    def run_threat_tick(self) -> ThreatSituation:
        """Run one threat tick: scan, then retreat or engage if warranted.

        Returns:
            The freshly assessed situation (the previous one if perception failed).
        """
        started = time.time()
        try:
            position = self._perception.current_position()
            entities = self._perception.nearby_entities()
            health = self._perception.current_health()
        except Exception as e:
            logger.warning(f"[THREAT] Perception failed: {e}")
            self._absorb(e, "perception")
            return self._assessor.last_situation

        situation = self._assessor.evaluate(position, entities)
        pruned = self._assessor.prune_zones()
        if pruned:
            logger.debug(f"[THREAT] Forgot {pruned} expired danger cell(s)")
        health_percent = health / self._config.retreat.max_health * 100

        try:
            if self._assessor.should_preemptively_retreat(health_percent, situation):
                if self._retreat.retreat(position, situation.immediate or situation.threats):
                    self._metrics.record_retreat()
            elif self._retreat.can_engage(situation):
                self._metrics.record_engagement(self._retreat.engage(situation))
        except Exception as e:
            logger.exception(f"[THREAT] Unexpected error while reacting to threats: {e}")
            self._absorb(e, "threat-tick")

        self._metrics.record_threat_tick((time.time() - started) * 1000, situation.level.value)
        return situation
