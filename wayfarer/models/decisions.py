"""Decision routing models: the context sent to the router and its recommendation."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from wayfarer.models.goals import Goal
    from wayfarer.models.threats import ThreatSituation
    from wayfarer.models.world import WorldSnapshot


class RecommendationSource(StrEnum):
    """Where a recommendation came from."""

    LOCAL = "local"
    CACHE = "cache"
    ADVISORY = "advisory"


class DecisionContext(BaseModel):
    """Normalized snapshot passed to the decision router."""

    health_percent: Annotated[float, Field(ge=0.0)] = Field(default=100.0)
    food_percent: Annotated[float, Field(ge=0.0)] = Field(default=100.0)
    time_of_day: Annotated[int, Field(ge=0)] = Field(default=0)
    is_night: bool = Field(default=False)
    threat_count: Annotated[int, Field(ge=0)] = Field(default=0)
    inventory_fullness: Annotated[float, Field(ge=0.0, le=1.0)] = Field(default=0.0)
    has_tools: bool = Field(default=True)
    candidates: list[str] = Field(
        default_factory=list, description="Candidate goal identities, best first"
    )

    model_config = {"frozen": True}

    @classmethod
    def from_state(
        cls,
        world: WorldSnapshot,
        candidates: list[Goal],
        situation: ThreatSituation | None = None,
    ) -> DecisionContext:
        """Build a context from a world snapshot and ranked candidates."""
        return cls(
            health_percent=world.health_percent,
            food_percent=world.food_percent,
            time_of_day=world.time_of_day,
            is_night=world.is_night,
            threat_count=situation.threat_count if situation is not None else 0,
            inventory_fullness=world.inventory.fullness,
            has_tools=world.inventory.has_basic_tools,
            candidates=[goal.identity for goal in candidates],
        )

    @property
    def top_candidate(self) -> str | None:
        """The locally preferred goal identity."""
        return self.candidates[0] if self.candidates else None


class AIRecommendation(BaseModel):
    """A routed recommendation for the next goal."""

    action: str = Field(..., min_length=1, description="Recommended goal identity")
    source: RecommendationSource = Field(...)
    confidence: Annotated[float, Field(ge=0.0, le=1.0)] = Field(default=0.5)
    rationale: str = Field(default="")
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}
