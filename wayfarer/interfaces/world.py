"""World-interaction and perception interfaces.

The decision core never talks to a game client directly. Movement, digging,
attacking and item use go through `WorldInteraction`; everything the core
knows about the world comes from `Perception`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wayfarer.models.world import InventorySummary, PerceivedEntity, Position


class WayfarerError(Exception):
    """Base error for the decision core."""

    pass


class WorldInteractionError(WayfarerError):
    """Error raised by the world-interaction capability.

    Attributes:
        transient: True for protocol noise that callers should ignore or retry.
    """

    def __init__(self, message: str, transient: bool = False) -> None:
        super().__init__(message)
        self.transient = transient


class NavigationTimeout(WorldInteractionError):
    """Navigation did not reach its target before the timeout."""

    def __init__(self, message: str = "navigation timed out") -> None:
        super().__init__(message, transient=False)


class WorldInteraction(ABC):
    """Abstract interface for acting on the world.

    Implementations either return normally or raise `WorldInteractionError`.
    `perform_action` may also return False to report an explicit failure.
    """

    @abstractmethod
    def navigate_to(self, point: Position, timeout: float) -> None:
        """Move to an exact point.

        Args:
            point: Target position.
            timeout: Maximum seconds to spend navigating.

        Raises:
            NavigationTimeout: If the target was not reached in time.
            WorldInteractionError: On any other movement failure.
        """
        ...

    @abstractmethod
    def navigate_near(self, point: Position, radius: float, timeout: float) -> None:
        """Move to within `radius` of a point.

        Args:
            point: Target position.
            radius: Acceptable arrival distance.
            timeout: Maximum seconds to spend navigating.

        Raises:
            NavigationTimeout: If the target was not reached in time.
            WorldInteractionError: On any other movement failure.
        """
        ...

    @abstractmethod
    def perform_action(self, action_id: str, target: str | None = None) -> bool | None:
        """Perform an abstract action (mine, attack, equip, consume, ...).

        Args:
            action_id: Opaque action identifier.
            target: Optional target reference (entity id, resource name).

        Returns:
            False for an explicit failure; anything else counts as success.
        """
        ...


class Perception(ABC):
    """Abstract read-only view of the agent and its surroundings."""

    @abstractmethod
    def current_health(self) -> float:
        """Current health points."""
        ...

    @abstractmethod
    def current_food(self) -> float:
        """Current food level."""
        ...

    @abstractmethod
    def current_position(self) -> Position:
        """Current position of the agent."""
        ...

    @abstractmethod
    def nearby_entities(self) -> list[PerceivedEntity]:
        """Entities currently perceived around the agent."""
        ...

    @abstractmethod
    def time_of_day(self) -> int:
        """Time of day in ticks (0-24000)."""
        ...

    @abstractmethod
    def inventory_summary(self) -> InventorySummary:
        """Abstract summary of the inventory."""
        ...
