"""Goal models: the closed set of goal kinds, priority tiers and outcomes."""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum, StrEnum
from typing import Annotated

from pydantic import BaseModel, Field


class PriorityTier(IntEnum):
    """Priority tiers; higher tiers are always preferred."""

    LOW = 25
    MEDIUM = 50
    HIGH = 75
    CRITICAL = 100


class GoalCategory(StrEnum):
    """Broad activity categories used for preference weights."""

    SURVIVAL = "survival"
    EQUIPMENT = "equipment"
    INVENTORY = "inventory"
    MINING = "mining"
    EXPLORING = "exploring"
    GATHERING = "gathering"
    BUILDING = "building"
    FARMING = "farming"
    CRAFTING = "crafting"
    IDLE = "idle"


class GoalKind(StrEnum):
    """Closed set of goals the agent can pursue.

    The value doubles as the goal identity used for failure tracking and
    advisory recommendations.
    """

    FIND_FOOD = "find_food"
    HEAL = "heal"
    CRAFT_BASIC_TOOLS = "craft_basic_tools"
    MANAGE_INVENTORY = "manage_inventory"
    NIGHT_MINING = "night_mining"
    CRAFT_ITEMS = "craft_items"
    EXPLORE_WORLD = "explore_world"
    GATHER_RESOURCES = "gather_resources"
    BUILD_STRUCTURES = "build_structures"
    MINE_RESOURCES = "mine_resources"
    AUTO_FARM = "auto_farm"
    UPGRADE_TOOLS = "upgrade_tools"
    ADVANCED_BASE = "advanced_base"
    IDLE_EXPLORE = "idle_explore"


GOAL_CATEGORIES: dict[GoalKind, GoalCategory] = {
    GoalKind.FIND_FOOD: GoalCategory.SURVIVAL,
    GoalKind.HEAL: GoalCategory.SURVIVAL,
    GoalKind.CRAFT_BASIC_TOOLS: GoalCategory.EQUIPMENT,
    GoalKind.MANAGE_INVENTORY: GoalCategory.INVENTORY,
    GoalKind.NIGHT_MINING: GoalCategory.MINING,
    GoalKind.CRAFT_ITEMS: GoalCategory.CRAFTING,
    GoalKind.EXPLORE_WORLD: GoalCategory.EXPLORING,
    GoalKind.GATHER_RESOURCES: GoalCategory.GATHERING,
    GoalKind.BUILD_STRUCTURES: GoalCategory.BUILDING,
    GoalKind.MINE_RESOURCES: GoalCategory.MINING,
    GoalKind.AUTO_FARM: GoalCategory.FARMING,
    GoalKind.UPGRADE_TOOLS: GoalCategory.EQUIPMENT,
    GoalKind.ADVANCED_BASE: GoalCategory.BUILDING,
    GoalKind.IDLE_EXPLORE: GoalCategory.IDLE,
}

# Base utility per goal, scaled by tier in Goal.create.
BASE_UTILITY: dict[GoalKind, float] = {
    GoalKind.FIND_FOOD: 1.0,
    GoalKind.HEAL: 1.0,
    GoalKind.CRAFT_BASIC_TOOLS: 0.9,
    GoalKind.MANAGE_INVENTORY: 0.6,
    GoalKind.NIGHT_MINING: 0.7,
    GoalKind.CRAFT_ITEMS: 0.5,
    GoalKind.EXPLORE_WORLD: 0.6,
    GoalKind.GATHER_RESOURCES: 0.7,
    GoalKind.BUILD_STRUCTURES: 0.5,
    GoalKind.MINE_RESOURCES: 0.7,
    GoalKind.AUTO_FARM: 0.6,
    GoalKind.UPGRADE_TOOLS: 0.8,
    GoalKind.ADVANCED_BASE: 0.9,
    GoalKind.IDLE_EXPLORE: 0.3,
}


class Goal(BaseModel):
    """A prioritized unit of work selected by the scheduler."""

    identity: str = Field(..., min_length=1, description="Stable identity across ticks")
    kind: GoalKind = Field(..., description="Goal kind resolved by the handler table")
    category: GoalCategory = Field(..., description="Activity category")
    priority: PriorityTier = Field(..., description="Priority tier")
    expected_utility: Annotated[float, Field(ge=0.0)] = Field(
        default=0.0, description="Reward credited when the goal succeeds"
    )

    model_config = {"frozen": True}

    @classmethod
    def create(cls, kind: GoalKind, priority: PriorityTier) -> Goal:
        """Build a goal for a kind with its default category and utility."""
        return cls(
            identity=kind.value,
            kind=kind,
            category=GOAL_CATEGORIES[kind],
            priority=priority,
            expected_utility=round(BASE_UTILITY[kind] * int(priority) / 10, 2),
        )


class GoalOutcome(BaseModel):
    """Outcome record emitted after every dispatch."""

    goal_identity: str = Field(..., min_length=1)
    success: bool = Field(...)
    duration_ms: Annotated[float, Field(ge=0.0)] = Field(default=0.0)
    timestamp: datetime = Field(default_factory=datetime.now)
    reward: float = Field(default=0.0, description="Expected utility if successful, else 0")
    transient: bool = Field(
        default=False, description="Failure was transient noise and not counted"
    )
    error: str | None = Field(default=None)

    model_config = {"frozen": True}


class QueueState(BaseModel):
    """Read-only view of the goal queue after the latest goal tick."""

    tick: Annotated[int, Field(ge=0)] = Field(default=0)
    current_goal: str | None = Field(default=None, description="Goal being dispatched, if any")
    last_goal: str | None = Field(default=None)
    candidates: list[str] = Field(default_factory=list, description="Ranked candidate identities")
    failure_counts: dict[str, int] = Field(default_factory=dict)
    blocked_by_safety: bool = Field(default=False)
    updated_at: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}
