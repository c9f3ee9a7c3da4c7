"""Threat models: per-entity records, aggregate situations, encounters, retreat state."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, Field

from wayfarer.models.world import Position


class ThreatLevel(StrEnum):
    """Aggregate danger classification."""

    SAFE = "safe"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EncounterOutcome(StrEnum):
    """How a threat encounter concluded."""

    WIN = "win"
    RETREAT = "retreat"
    DEATH = "death"


class RetreatPhase(StrEnum):
    """Phases of the retreat/cooldown state machine."""

    IDLE = "idle"
    RETREATING = "retreating"
    COOLDOWN = "cooldown"


class ThreatRecord(BaseModel):
    """A scored hostile entity from one scan."""

    entity_id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    position: Position = Field(...)
    distance: Annotated[float, Field(ge=0.0)] = Field(...)
    danger_score: Annotated[float, Field(ge=0.0)] = Field(
        ..., description="Static score for the category"
    )
    threat_level: Annotated[float, Field(ge=0.0)] = Field(
        ..., description="Danger score scaled by distance falloff"
    )

    model_config = {"frozen": True}


class ThreatSituation(BaseModel):
    """Aggregate classification of every threat from one scan."""

    level: ThreatLevel = Field(default=ThreatLevel.SAFE)
    total_score: Annotated[float, Field(ge=0.0)] = Field(default=0.0)
    threats: list[ThreatRecord] = Field(
        default_factory=list, description="All threats, highest threat level first"
    )
    immediate: list[ThreatRecord] = Field(default_factory=list)
    critical: list[ThreatRecord] = Field(default_factory=list)
    should_retreat: bool = Field(default=False)
    can_fight: bool = Field(default=False)
    most_dangerous: ThreatRecord | None = Field(default=None)
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}

    @property
    def threat_count(self) -> int:
        """Number of threats in scan range."""
        return len(self.threats)


class ThreatEncounter(BaseModel):
    """A concluded encounter, published on the threat-encounter stream."""

    category: str = Field(..., min_length=1)
    position: Position = Field(...)
    outcome: EncounterOutcome = Field(...)
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}


class DangerZoneEntry(BaseModel):
    """Encounter tally for one spatial cell."""

    encounter_count: Annotated[int, Field(ge=0)] = Field(default=0)
    last_seen: float = Field(default=0.0, description="Clock time of the last encounter")

    model_config = {"frozen": True}


class RetreatState(BaseModel):
    """Read-only snapshot of the shared retreat state."""

    phase: RetreatPhase = Field(default=RetreatPhase.IDLE)
    retreating: bool = Field(default=False)
    last_retreat_time: float | None = Field(
        default=None, description="Clock time the last retreat completed"
    )

    model_config = {"frozen": True}
