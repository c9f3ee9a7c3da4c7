"""Goal generation, ranking, failure tracking and dispatch."""

from wayfarer.strategy.failures import FailureTracker
from wayfarer.strategy.goals import GoalGenerator, apply_recommendation, rank_candidates
from wayfarer.strategy.handlers import DEFAULT_ACTION_IDS, GoalHandlers

__all__ = [
    "DEFAULT_ACTION_IDS",
    "FailureTracker",
    "GoalGenerator",
    "GoalHandlers",
    "apply_recommendation",
    "rank_candidates",
]
