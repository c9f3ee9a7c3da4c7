"""Retreat and engagement gating with cooldown hysteresis."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from wayfarer.config.loader import NavigationConfig, RetreatConfig
from wayfarer.interfaces.world import (
    NavigationTimeout,
    Perception,
    WorldInteraction,
    WorldInteractionError,
)
from wayfarer.models.threats import (
    EncounterOutcome,
    RetreatPhase,
    RetreatState,
    ThreatRecord,
    ThreatSituation,
)
from wayfarer.models.world import Position
from wayfarer.threat.assessor import ThreatAssessor

if TYPE_CHECKING:
    from wayfarer.core.state import SchedulerState

logger = logging.getLogger(__name__)

ENGAGE_RADIUS = 2.0


def escape_vector(self_position: Position, threats: list[ThreatRecord]) -> tuple[float, float]:
    """Unit (dx, dz) pointing away from the average threat position.

    Falls back to +x when the threats are centred on the agent.
    """
    avg_x = sum(t.position.x for t in threats) / len(threats)
    avg_z = sum(t.position.z for t in threats) / len(threats)
    dx, dz = self_position.x - avg_x, self_position.z - avg_z
    length = math.hypot(dx, dz)
    if length == 0:
        return 1.0, 0.0
    return dx / length, dz / length


class RetreatController:
    """Drives IDLE -> RETREATING -> COOLDOWN -> IDLE and gates combat.

    Navigation timeouts and world errors during a retreat or an engagement
    are logged and swallowed. The cooldown always starts, whatever happened
    during the retreat.
    """

    def __init__(
        self,
        world: WorldInteraction,
        perception: Perception,
        assessor: ThreatAssessor,
        state: SchedulerState,
        config: RetreatConfig | None = None,
        navigation: NavigationConfig | None = None,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        """Initialize the controller.

        Args:
            world: World-interaction capability used to move, eat and attack.
            perception: Used to check food and poll health while healing.
            assessor: Receives retreat/win encounters.
            state: Shared retreat state.
            config: Retreat distances, timeouts and action ids.
            navigation: Approach timeout for engagements.
            sleep: Wait function for health polling, called at most
                `heal_wait_seconds / heal_poll_seconds` times. A truthy return
                aborts the wait (matches `threading.Event.wait`).
        """
        self._world = world
        self._perception = perception
        self._assessor = assessor
        self._state = state
        self._config = config or RetreatConfig()
        self._navigation = navigation or NavigationConfig()
        self._sleep = sleep

    def can_retreat(self) -> bool:
        return self._state.retreat_phase() == RetreatPhase.IDLE

    def can_engage(self, situation: ThreatSituation) -> bool:
        """Fighting needs a fightable situation, an idle controller and a target."""
        return bool(situation.can_fight and situation.immediate and self.can_retreat())

    def snapshot(self) -> RetreatState:
        return self._state.retreat_snapshot()

    def retreat(self, self_position: Position, threats: list[ThreatRecord]) -> bool:
        """Run one retreat if the controller is idle.

        Returns:
            True if a retreat was attempted, False if gated or nothing to flee.
        """
        if not threats:
            return False
        if not self._state.begin_retreat():
            logger.debug("[RETREAT] Skipped: cooldown active")
            return False

        logger.warning(f"[RETREAT] Retreating from {len(threats)} threat(s)")
        try:
            self._flee(self_position, threats)
            self._heal()
            for threat in threats:
                self._assessor.record_encounter(threat, EncounterOutcome.RETREAT)
        finally:
            self._state.complete_retreat()
        logger.info(f"[RETREAT] Complete; cooldown {self._state.cooldown_window:.0f}s")
        return True

    def _flee(self, self_position: Position, threats: list[ThreatRecord]) -> None:
        dx, dz = escape_vector(self_position, threats)
        distance = self._config.escape_distance
        target = self_position.offset(dx=dx * distance, dz=dz * distance)
        try:
            self._world.navigate_near(
                target,
                radius=self._config.arrival_radius,
                timeout=self._config.navigation_timeout_seconds,
            )
        except NavigationTimeout:
            logger.warning("[RETREAT] Escape navigation timed out")
        except WorldInteractionError as e:
            logger.warning(f"[RETREAT] Escape navigation failed: {e}")

    def _heal(self) -> None:
        cfg = self._config
        try:
            if self._perception.inventory_summary().has_food:
                self._world.perform_action(cfg.consume_action, "food")
                return
        except WorldInteractionError as e:
            logger.warning(f"[RETREAT] Could not eat: {e}")
            return

        polls = math.ceil(cfg.heal_wait_seconds / cfg.heal_poll_seconds)
        for _ in range(polls):
            if self._perception.current_health() >= cfg.max_health:
                return
            if self._sleep(cfg.heal_poll_seconds):
                return
        logger.debug("[RETREAT] Passive regeneration wait expired")

    def engage(self, situation: ThreatSituation) -> bool:
        """Attack the closest immediate threat when combat is allowed.

        Returns:
            True if the attack succeeded.
        """
        if not self.can_engage(situation):
            return False

        target = min(situation.immediate, key=lambda r: r.distance)
        logger.info(f"[RETREAT] Engaging {target.category} at {target.distance:.1f}")
        try:
            self._world.navigate_near(
                target.position,
                radius=ENGAGE_RADIUS,
                timeout=self._navigation.approach_timeout_seconds,
            )
            result = self._world.perform_action(self._config.attack_action, target.entity_id)
        except WorldInteractionError as e:
            logger.warning(f"[RETREAT] Engagement with {target.category} failed: {e}")
            return False

        if result is False:
            return False
        self._assessor.record_encounter(target, EncounterOutcome.WIN)
        return True
