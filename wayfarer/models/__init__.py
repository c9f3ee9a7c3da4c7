"""Shared data models for the decision core.

All models use Pydantic for validation and serialization.
"""

from wayfarer.models.decisions import AIRecommendation, DecisionContext, RecommendationSource
from wayfarer.models.goals import (
    Goal,
    GoalCategory,
    GoalKind,
    GoalOutcome,
    PriorityTier,
    QueueState,
)
from wayfarer.models.threats import (
    DangerZoneEntry,
    EncounterOutcome,
    RetreatPhase,
    RetreatState,
    ThreatEncounter,
    ThreatLevel,
    ThreatRecord,
    ThreatSituation,
)
from wayfarer.models.world import InventorySummary, PerceivedEntity, Position, WorldSnapshot

__all__ = [
    "AIRecommendation",
    "DangerZoneEntry",
    "DecisionContext",
    "EncounterOutcome",
    "Goal",
    "GoalCategory",
    "GoalKind",
    "GoalOutcome",
    "InventorySummary",
    "PerceivedEntity",
    "Position",
    "PriorityTier",
    "QueueState",
    "RecommendationSource",
    "RetreatPhase",
    "RetreatState",
    "ThreatEncounter",
    "ThreatLevel",
    "ThreatRecord",
    "ThreatSituation",
    "WorldSnapshot",
]
