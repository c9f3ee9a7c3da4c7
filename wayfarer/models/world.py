"""World state models: positions, perceived entities, inventory, snapshots."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field

NIGHT_START = 13000
NIGHT_END = 23000


class Position(BaseModel):
    """A point in world coordinates. `y` is vertical."""

    x: float = Field(default=0.0, description="East-west coordinate")
    y: float = Field(default=0.0, description="Vertical coordinate")
    z: float = Field(default=0.0, description="North-south coordinate")

    model_config = {"frozen": True}

    def distance_to(self, other: Position) -> float:
        """Euclidean distance to another position."""
        return math.sqrt(
            (self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2
        )

    def offset(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> Position:
        """Return a new position shifted by the given deltas."""
        return Position(x=self.x + dx, y=self.y + dy, z=self.z + dz)

    def horizontal_offset_to(self, other: Position) -> tuple[float, float]:
        """(dx, dz) from this position to another, ignoring height."""
        return other.x - self.x, other.z - self.z


class PerceivedEntity(BaseModel):
    """An entity reported by perception."""

    entity_id: str = Field(..., min_length=1, description="Stable entity reference")
    category: str = Field(..., min_length=1, description="Entity category name")
    position: Position = Field(..., description="Last known position")

    model_config = {"frozen": True}


class InventorySummary(BaseModel):
    """Abstract inventory facts the decision core cares about."""

    has_food: bool = Field(default=False)
    has_pickaxe: bool = Field(default=False)
    has_axe: bool = Field(default=False)
    free_slots: Annotated[int, Field(ge=0)] = Field(default=36)
    total_slots: Annotated[int, Field(gt=0)] = Field(default=36)
    full_threshold: Annotated[int, Field(ge=0)] = Field(
        default=3, description="Inventory counts as full at or below this many free slots"
    )
    material_counts: dict[str, int] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def is_full(self) -> bool:
        """Check if the inventory is (nearly) full."""
        return self.free_slots <= self.full_threshold

    @property
    def fullness(self) -> float:
        """Fraction of slots in use (0.0 to 1.0)."""
        used = self.total_slots - min(self.free_slots, self.total_slots)
        return used / self.total_slots

    @property
    def has_basic_tools(self) -> bool:
        """Check for both a pickaxe and an axe."""
        return self.has_pickaxe and self.has_axe


class WorldSnapshot(BaseModel):
    """Complete perception snapshot at a point in time."""

    health: Annotated[float, Field(ge=0)] = Field(default=20.0)
    food: Annotated[float, Field(ge=0)] = Field(default=20.0)
    max_health: Annotated[float, Field(gt=0)] = Field(default=20.0)
    max_food: Annotated[float, Field(gt=0)] = Field(default=20.0)
    position: Position = Field(default_factory=Position)
    time_of_day: Annotated[int, Field(ge=0)] = Field(default=0)
    inventory: InventorySummary = Field(default_factory=InventorySummary)
    entities: list[PerceivedEntity] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}

    @property
    def health_percent(self) -> float:
        """Health as a percentage of max health."""
        return self.health / self.max_health * 100

    @property
    def food_percent(self) -> float:
        """Food as a percentage of max food."""
        return self.food / self.max_food * 100

    @property
    def is_night(self) -> bool:
        """Whether the time of day falls in the night window."""
        return NIGHT_START < self.time_of_day % 24000 < NIGHT_END
