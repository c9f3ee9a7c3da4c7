"""Candidate goal generation, priority ranking and failure-aware selection.

The rule table turns a world snapshot into a set of candidate goals:

- survival needs (low food, low health) emit CRITICAL goals
- missing tools or a full inventory emit HIGH goals
- time of day plus Bernoulli preference draws emit MEDIUM goals
- rare expensive projects emit LOW goals
- idle exploration is always appended last so the set is never empty

Stochastic gates draw from an injectable `random.Random` so runs are
reproducible under a seed.
"""

from __future__ import annotations

import logging
import random

from wayfarer.config.loader import GoalsConfig
from wayfarer.models.decisions import AIRecommendation
from wayfarer.models.goals import Goal, GoalKind, PriorityTier
from wayfarer.models.world import WorldSnapshot
from wayfarer.strategy.failures import FailureTracker

logger = logging.getLogger(__name__)


def rank_candidates(goals: list[Goal]) -> list[Goal]:
    """Sort by priority tier, highest first. Ties keep generation order."""
    return sorted(goals, key=lambda g: -int(g.priority))


def apply_recommendation(
    ranked: list[Goal], recommendation: AIRecommendation | None
) -> list[Goal]:
    """Move the recommended goal to the front if it is a current candidate.

    Recommendations naming anything outside the candidate set are ignored.
    """
    if recommendation is None:
        return ranked
    for index, goal in enumerate(ranked):
        if goal.identity == recommendation.action:
            if index == 0:
                return ranked
            logger.info(
                f"[GOAL] {recommendation.source} recommendation promotes "
                f"{goal.identity} over {ranked[0].identity}"
            )
            return [goal] + ranked[:index] + ranked[index + 1:]
    logger.debug(f"[GOAL] Ignoring recommendation for non-candidate {recommendation.action!r}")
    return ranked


class GoalGenerator:
    """Builds, filters and ranks candidate goals each scheduling tick."""

    def __init__(
        self,
        config: GoalsConfig | None = None,
        tracker: FailureTracker | None = None,
        rng: random.Random | None = None,
        max_generation_resets: int = 1,
    ) -> None:
        """Initialize the generator.

        Args:
            config: Thresholds and preference probabilities.
            tracker: Failure tracker used to suppress exhausted goals.
            rng: Random source for preference draws. Seeded from config if omitted.
            max_generation_resets: How many global resets selection may perform.
        """
        self._config = config or GoalsConfig()
        self._tracker = tracker or FailureTracker()
        self._rng = rng or random.Random(self._config.seed)
        self._max_resets = max(0, max_generation_resets)

    @property
    def tracker(self) -> FailureTracker:
        return self._tracker

    def _draw(self, probability: float) -> bool:
        return self._rng.random() < probability

    def generate_candidates(self, world: WorldSnapshot) -> list[Goal]:
        """Apply the rule table to a snapshot.

        Returns goals in generation order (not ranked). Always ends with
        the idle exploration fallback.
        """
        prefs = self._config.preferences
        goals: list[Goal] = []

        if world.food < self._config.min_food_level:
            goals.append(Goal.create(GoalKind.FIND_FOOD, PriorityTier.CRITICAL))
        if world.health_percent < self._config.min_health_percent:
            goals.append(Goal.create(GoalKind.HEAL, PriorityTier.CRITICAL))

        if not world.inventory.has_basic_tools:
            goals.append(Goal.create(GoalKind.CRAFT_BASIC_TOOLS, PriorityTier.HIGH))
        if world.inventory.is_full:
            goals.append(Goal.create(GoalKind.MANAGE_INVENTORY, PriorityTier.HIGH))

        if world.is_night:
            if self._draw(prefs.mining * prefs.night_mining_multiplier):
                goals.append(Goal.create(GoalKind.NIGHT_MINING, PriorityTier.MEDIUM))
            if self._draw(prefs.crafting):
                goals.append(Goal.create(GoalKind.CRAFT_ITEMS, PriorityTier.MEDIUM))
        else:
            if self._draw(prefs.exploring):
                goals.append(Goal.create(GoalKind.EXPLORE_WORLD, PriorityTier.MEDIUM))
            if self._draw(prefs.gathering):
                goals.append(Goal.create(GoalKind.GATHER_RESOURCES, PriorityTier.MEDIUM))
            if self._draw(prefs.building):
                goals.append(Goal.create(GoalKind.BUILD_STRUCTURES, PriorityTier.MEDIUM))

        if self._draw(prefs.mining):
            goals.append(Goal.create(GoalKind.MINE_RESOURCES, PriorityTier.MEDIUM))
        if self._draw(prefs.farming):
            goals.append(Goal.create(GoalKind.AUTO_FARM, PriorityTier.MEDIUM))
        if self._draw(prefs.upgrading):
            goals.append(Goal.create(GoalKind.UPGRADE_TOOLS, PriorityTier.MEDIUM))

        if self._draw(prefs.advanced_base):
            goals.append(Goal.create(GoalKind.ADVANCED_BASE, PriorityTier.LOW))

        goals.append(self.fallback_goal())
        return goals

    @staticmethod
    def fallback_goal() -> Goal:
        """The guaranteed idle exploration goal."""
        return Goal.create(GoalKind.IDLE_EXPLORE, PriorityTier.LOW)

    def select_candidates(self, world: WorldSnapshot) -> list[Goal]:
        """Generate, drop failure-capped goals and rank the rest.

        When every candidate is capped the tracker is reset and generation
        retried, at most `max_generation_resets` times. If the set is still
        empty the idle fallback is returned alone.
        """
        for attempt in range(self._max_resets + 1):
            generated = self.generate_candidates(world)
            available = [g for g in generated if not self._tracker.is_capped(g.identity)]
            if available:
                return rank_candidates(available)
            if attempt < self._max_resets:
                logger.warning(
                    f"[GOAL] All {len(generated)} candidates failure-capped; resetting tracker"
                )
                self._tracker.reset()

        logger.warning("[GOAL] No viable candidates after reset; using idle fallback")
        return [self.fallback_goal()]
