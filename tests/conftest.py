"""Shared fakes and fixtures for the decision core tests."""

from __future__ import annotations

import random
from typing import Any

import pytest

from wayfarer.interfaces.world import Perception, WorldInteraction
from wayfarer.models.world import InventorySummary, PerceivedEntity, Position


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> bool:
        """Sleep replacement that moves the clock instead of blocking."""
        self.advance(seconds)
        return False


class FixedRandom(random.Random):
    """Random source whose `random()` always returns the same value.

    0.0 makes every Bernoulli draw succeed, 0.99 makes them all fail.
    """

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


class FakeWorld(Perception, WorldInteraction):
    """Scriptable perception and world interaction.

    `action_results` maps action ids to a return value or an exception
    instance to raise. `navigation_error` is raised by every navigation call
    when set.
    """

    def __init__(self) -> None:
        self.health = 20.0
        self.food = 20.0
        self.position = Position(x=0.0, y=64.0, z=0.0)
        self.entities: list[PerceivedEntity] = []
        self.tick_of_day = 1000
        self.inventory = InventorySummary(
            has_food=True, has_pickaxe=True, has_axe=True, free_slots=20
        )
        self.action_results: dict[str, Any] = {}
        self.navigation_error: BaseException | None = None
        self.actions: list[tuple[str, str | None]] = []
        self.navigations: list[tuple[Position, float]] = []

    def current_health(self) -> float:
        return self.health

    def current_food(self) -> float:
        return self.food

    def current_position(self) -> Position:
        return self.position

    def nearby_entities(self) -> list[PerceivedEntity]:
        return list(self.entities)

    def time_of_day(self) -> int:
        return self.tick_of_day

    def inventory_summary(self) -> InventorySummary:
        return self.inventory

    def navigate_to(self, point: Position, timeout: float) -> None:
        self.navigate_near(point, 0.0, timeout)

    def navigate_near(self, point: Position, radius: float, timeout: float) -> None:
        self.navigations.append((point, radius))
        if self.navigation_error is not None:
            raise self.navigation_error

    def perform_action(self, action_id: str, target: str | None = None) -> bool | None:
        self.actions.append((action_id, target))
        result = self.action_results.get(action_id, True)
        if isinstance(result, BaseException):
            raise result
        return result

    def add_entity(self, category: str, distance: float, entity_id: str | None = None) -> PerceivedEntity:
        """Place an entity `distance` units east of the agent."""
        entity = PerceivedEntity(
            entity_id=entity_id or f"{category}-{len(self.entities) + 1}",
            category=category,
            position=self.position.offset(dx=distance),
        )
        self.entities.append(entity)
        return entity


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def world() -> FakeWorld:
    return FakeWorld()
