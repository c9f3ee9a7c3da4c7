"""A seeded, in-process world for local runs and tests.

`SandboxWorld` implements both `Perception` and `WorldInteraction` on top
of a tiny simulation: a day/night cycle, draining food, passive
regeneration, hostile entities that spawn at night and drift toward the
agent, and configurable rates of navigation timeouts, transient protocol
noise and explicit action failures. Time is simulated, so cooldowns and
danger-zone expiry can be exercised without waiting.

Example:
    >>> world = SandboxWorld(seed=7)
    >>> world.advance(5.0)
    >>> world.current_position()
    Position(x=0.0, y=64.0, z=0.0)
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass

from wayfarer.interfaces.world import (
    NavigationTimeout,
    Perception,
    WorldInteraction,
    WorldInteractionError,
)
from wayfarer.models.world import InventorySummary, PerceivedEntity, Position

logger = logging.getLogger(__name__)

TICKS_PER_SECOND = 20
DAY_LENGTH_TICKS = 24000
HOSTILE_CATEGORIES = ("zombie", "skeleton", "spider", "creeper", "witch", "enderman")


@dataclass
class SandboxConfig:
    """Tuning knobs for the sandbox simulation.

    Attributes:
        start_time_of_day: Initial time of day in ticks.
        food_drain_per_second: Food lost per simulated second.
        regen_per_second: Health regained per second while food >= 18.
        spawn_chance_night: Chance per second of a hostile spawning at night.
        spawn_chance_day: Chance per second of a hostile spawning during the day.
        spawn_distance: (min, max) distance of new spawns from the agent.
        approach_speed: Units per second hostiles move toward the agent.
        navigation_timeout_rate: Chance a navigation call times out.
        transient_error_rate: Chance any call raises transient noise.
        action_failure_rate: Chance an action returns False.
        travel_seconds: Simulated seconds spent per navigation call.
        action_seconds: Simulated seconds spent per action.
    """

    start_time_of_day: int = 1000
    food_drain_per_second: float = 0.05
    regen_per_second: float = 0.25
    spawn_chance_night: float = 0.08
    spawn_chance_day: float = 0.01
    spawn_distance: tuple[float, float] = (12.0, 48.0)
    approach_speed: float = 0.6
    navigation_timeout_rate: float = 0.05
    transient_error_rate: float = 0.02
    action_failure_rate: float = 0.15
    travel_seconds: float = 4.0
    action_seconds: float = 2.0


class SandboxWorld(Perception, WorldInteraction):
    """Seeded simulation implementing perception and world interaction."""

    def __init__(self, seed: int | None = None, config: SandboxConfig | None = None) -> None:
        self._rng = random.Random(seed)
        self._config = config or SandboxConfig()
        self._now = 0.0
        self._time_of_day = self._config.start_time_of_day
        self._health = 20.0
        self._food = 20.0
        self._position = Position(x=0.0, y=64.0, z=0.0)
        self._entities: dict[str, PerceivedEntity] = {}
        self._next_entity = 1
        self._has_food = True
        self._has_pickaxe = False
        self._has_axe = False
        self._free_slots = 30
        self.action_log: list[tuple[str, str | None]] = []

    # --- simulated time ---

    def clock(self) -> float:
        """Simulated wall clock in seconds."""
        return self._now

    def sleep(self, seconds: float) -> bool:
        """Advance simulated time. Never asks the caller to abort."""
        self.advance(seconds)
        return False

    def advance(self, seconds: float) -> None:
        """Advance the simulation by `seconds` of game time."""
        cfg = self._config
        steps = max(1, int(math.ceil(seconds)))
        step = seconds / steps
        for _ in range(steps):
            self._now += step
            self._time_of_day = int(self._time_of_day + step * TICKS_PER_SECOND) % DAY_LENGTH_TICKS
            self._food = max(0.0, self._food - cfg.food_drain_per_second * step)
            if self._food >= 18:
                self._health = min(20.0, self._health + cfg.regen_per_second * step)
            elif self._food == 0:
                self._health = max(1.0, self._health - 0.5 * step)
            self._maybe_spawn(step)
            self._move_hostiles(step)

    def _is_night(self) -> bool:
        return 13000 < self._time_of_day < 23000

    def _maybe_spawn(self, step: float) -> None:
        cfg = self._config
        chance = cfg.spawn_chance_night if self._is_night() else cfg.spawn_chance_day
        if self._rng.random() >= chance * step:
            return
        angle = self._rng.uniform(0.0, 2 * math.pi)
        distance = self._rng.uniform(*cfg.spawn_distance)
        entity_id = f"hostile-{self._next_entity}"
        self._next_entity += 1
        self._entities[entity_id] = PerceivedEntity(
            entity_id=entity_id,
            category=self._rng.choice(HOSTILE_CATEGORIES),
            position=self._position.offset(
                dx=math.cos(angle) * distance, dz=math.sin(angle) * distance
            ),
        )

    def _move_hostiles(self, step: float) -> None:
        speed = self._config.approach_speed * step
        for entity_id, entity in list(self._entities.items()):
            dx, dz = entity.position.horizontal_offset_to(self._position)
            distance = math.hypot(dx, dz)
            if distance > 80:
                del self._entities[entity_id]
                continue
            if distance <= 1.5:
                self._health = max(0.5, self._health - 1.0 * step)
                continue
            self._entities[entity_id] = entity.model_copy(
                update={"position": entity.position.offset(dx=dx / distance * speed, dz=dz / distance * speed)}
            )

    def spawn(self, category: str, position: Position) -> str:
        """Place an entity explicitly and return its id."""
        entity_id = f"{category}-{self._next_entity}"
        self._next_entity += 1
        self._entities[entity_id] = PerceivedEntity(
            entity_id=entity_id, category=category, position=position
        )
        return entity_id

    # --- Perception ---

    def current_health(self) -> float:
        return self._health

    def current_food(self) -> float:
        return self._food

    def current_position(self) -> Position:
        return self._position

    def nearby_entities(self) -> list[PerceivedEntity]:
        return list(self._entities.values())

    def time_of_day(self) -> int:
        return self._time_of_day

    def inventory_summary(self) -> InventorySummary:
        return InventorySummary(
            has_food=self._has_food,
            has_pickaxe=self._has_pickaxe,
            has_axe=self._has_axe,
            free_slots=self._free_slots,
        )

    # --- WorldInteraction ---

    def _noise(self) -> None:
        if self._rng.random() < self._config.transient_error_rate:
            raise WorldInteractionError("protocol read error", transient=True)

    def navigate_to(self, point: Position, timeout: float) -> None:
        self.navigate_near(point, radius=0.0, timeout=timeout)

    def navigate_near(self, point: Position, radius: float, timeout: float) -> None:
        self._noise()
        travel = min(self._config.travel_seconds, timeout)
        if self._rng.random() < self._config.navigation_timeout_rate:
            self.advance(timeout)
            raise NavigationTimeout(f"could not reach ({point.x:.0f}, {point.z:.0f}) in {timeout}s")
        self.advance(travel)
        dx, dz = self._position.horizontal_offset_to(point)
        distance = math.hypot(dx, dz)
        if distance > radius and distance > 0:
            scale = (distance - radius) / distance
            self._position = self._position.offset(dx=dx * scale, dy=point.y - self._position.y, dz=dz * scale)

    def perform_action(self, action_id: str, target: str | None = None) -> bool | None:
        self._noise()
        self.advance(self._config.action_seconds)
        self.action_log.append((action_id, target))

        if action_id == "attack" and target is not None:
            if self._entities.pop(target, None) is None:
                return False
            return True
        if self._rng.random() < self._config.action_failure_rate:
            return False

        if action_id == "consume":
            if not self._has_food:
                return False
            self._food = min(20.0, self._food + 6)
            self._health = min(20.0, self._health + 2)
            self._has_food = self._rng.random() < 0.7
        elif action_id == "hunt":
            self._has_food = True
        elif action_id == "craft_tools":
            if target == "pickaxe":
                self._has_pickaxe = True
            elif target == "axe":
                self._has_axe = True
        elif action_id == "store_items":
            self._free_slots = 30
        elif action_id in ("mine", "gather"):
            self._free_slots = max(0, self._free_slots - self._rng.randint(1, 4))
        return True
