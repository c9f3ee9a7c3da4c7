"""Exhaustive goal-kind handler table.

Every `GoalKind` maps to exactly one handler method. The table is checked
when `GoalHandlers` is constructed, so adding a kind without a handler
fails immediately instead of at dispatch time.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable

from wayfarer.config.loader import NavigationConfig
from wayfarer.interfaces.world import Perception, WorldInteraction
from wayfarer.models.goals import Goal, GoalKind
from wayfarer.models.world import Position

logger = logging.getLogger(__name__)

# Default action id performed by each goal kind.
DEFAULT_ACTION_IDS: dict[str, str] = {
    GoalKind.FIND_FOOD: "hunt",
    GoalKind.HEAL: "consume",
    GoalKind.CRAFT_BASIC_TOOLS: "craft_tools",
    GoalKind.MANAGE_INVENTORY: "store_items",
    GoalKind.NIGHT_MINING: "mine",
    GoalKind.CRAFT_ITEMS: "craft",
    GoalKind.EXPLORE_WORLD: "survey",
    GoalKind.GATHER_RESOURCES: "gather",
    GoalKind.BUILD_STRUCTURES: "build",
    GoalKind.MINE_RESOURCES: "mine",
    GoalKind.AUTO_FARM: "farm",
    GoalKind.UPGRADE_TOOLS: "upgrade_tools",
    GoalKind.ADVANCED_BASE: "build_base",
    GoalKind.IDLE_EXPLORE: "look_around",
}

GoalHandler = Callable[[Goal], "bool | None"]


class GoalHandlers:
    """Resolves goals to world-interaction calls.

    Handlers either return normally (success), return False (explicit
    failure) or raise `WorldInteractionError` / `NavigationTimeout`.
    """

    def __init__(
        self,
        world: WorldInteraction,
        perception: Perception,
        config: NavigationConfig | None = None,
        action_ids: dict[str, str] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._world = world
        self._perception = perception
        self._config = config or NavigationConfig()
        self._actions = {str(k): v for k, v in DEFAULT_ACTION_IDS.items()}
        self._actions.update(action_ids or {})
        self._rng = rng or random.Random()

        self._table: dict[GoalKind, GoalHandler] = {
            GoalKind.FIND_FOOD: self._find_food,
            GoalKind.HEAL: self._heal,
            GoalKind.CRAFT_BASIC_TOOLS: self._craft_basic_tools,
            GoalKind.MANAGE_INVENTORY: self._perform,
            GoalKind.NIGHT_MINING: self._perform,
            GoalKind.CRAFT_ITEMS: self._perform,
            GoalKind.EXPLORE_WORLD: self._explore,
            GoalKind.GATHER_RESOURCES: self._perform,
            GoalKind.BUILD_STRUCTURES: self._perform,
            GoalKind.MINE_RESOURCES: self._perform,
            GoalKind.AUTO_FARM: self._perform,
            GoalKind.UPGRADE_TOOLS: self._upgrade_tools,
            GoalKind.ADVANCED_BASE: self._perform,
            GoalKind.IDLE_EXPLORE: self._idle_explore,
        }
        missing = [kind.value for kind in GoalKind if kind not in self._table]
        if missing:
            raise TypeError(f"No handler registered for goal kinds: {missing}")

    def action_id(self, kind: GoalKind) -> str:
        """Action id performed for a goal kind."""
        return self._actions[kind.value]

    def dispatch(self, goal: Goal) -> bool | None:
        """Run the handler for a goal's kind and return its raw result.

        Exceptions from the world-interaction capability propagate to the
        caller, which decides whether they count as failures.
        """
        handler = self._table[goal.kind]
        logger.debug(f"[GOAL] Dispatching {goal.identity} via {handler.__name__}")
        return handler(goal)

    def _perform(self, goal: Goal) -> bool | None:
        return self._world.perform_action(self.action_id(goal.kind))

    def _random_point(self, radius: float) -> Position:
        origin = self._perception.current_position()
        angle = self._rng.uniform(0.0, 2 * math.pi)
        distance = self._rng.uniform(radius / 4, radius)
        return origin.offset(dx=math.cos(angle) * distance, dz=math.sin(angle) * distance)

    def _find_food(self, goal: Goal) -> bool | None:
        if self._perception.inventory_summary().has_food:
            return self._world.perform_action(self._actions[GoalKind.HEAL.value], "food")
        self._world.navigate_near(
            self._random_point(self._config.explore_radius / 2),
            radius=4.0,
            timeout=self._config.explore_timeout_seconds,
        )
        return self._world.perform_action(self.action_id(goal.kind))

    def _heal(self, goal: Goal) -> bool | None:
        if not self._perception.inventory_summary().has_food:
            logger.debug("[GOAL] Nothing to eat; heal goal fails")
            return False
        return self._world.perform_action(self.action_id(goal.kind), "food")

    def _craft_basic_tools(self, goal: Goal) -> bool | None:
        inventory = self._perception.inventory_summary()
        action = self.action_id(goal.kind)
        for tool, owned in (("pickaxe", inventory.has_pickaxe), ("axe", inventory.has_axe)):
            if not owned and self._world.perform_action(action, tool) is False:
                return False
        return True

    def _upgrade_tools(self, goal: Goal) -> bool | None:
        if not self._perception.inventory_summary().has_basic_tools:
            return False
        return self._world.perform_action(self.action_id(goal.kind))

    def _explore(self, goal: Goal) -> bool | None:
        self._world.navigate_to(
            self._random_point(self._config.explore_radius),
            timeout=self._config.explore_timeout_seconds,
        )
        return self._world.perform_action(self.action_id(goal.kind))

    def _idle_explore(self, goal: Goal) -> bool | None:
        self._world.navigate_near(
            self._random_point(self._config.explore_radius / 4),
            radius=3.0,
            timeout=self._config.default_timeout_seconds,
        )
        return True
