"""Tests for the goal-kind handler table."""

from __future__ import annotations

import random

import pytest
from conftest import FakeWorld

from wayfarer.interfaces.world import NavigationTimeout, WorldInteractionError
from wayfarer.models.goals import Goal, GoalKind, PriorityTier
from wayfarer.models.world import InventorySummary
from wayfarer.strategy.handlers import DEFAULT_ACTION_IDS, GoalHandlers


def make_handlers(world: FakeWorld, action_ids: dict[str, str] | None = None) -> GoalHandlers:
    return GoalHandlers(world, world, action_ids=action_ids, rng=random.Random(1))


def goal(kind: GoalKind) -> Goal:
    return Goal.create(kind, PriorityTier.MEDIUM)


class TestHandlerTable:
    """Tests for table construction."""

    def test_every_kind_has_a_default_action(self) -> None:
        """Test that the default action table covers the closed goal set."""
        assert set(DEFAULT_ACTION_IDS) == set(GoalKind)

    @pytest.mark.parametrize("kind", list(GoalKind))
    def test_every_kind_dispatches(self, world: FakeWorld, kind: GoalKind) -> None:
        """Test that every goal kind resolves to a handler."""
        handlers = make_handlers(world)
        assert handlers.dispatch(goal(kind)) is not False

    def test_action_id_override(self, world: FakeWorld) -> None:
        """Test that configured action ids replace the defaults."""
        handlers = make_handlers(world, action_ids={"mine_resources": "dig"})

        handlers.dispatch(goal(GoalKind.MINE_RESOURCES))

        assert handlers.action_id(GoalKind.MINE_RESOURCES) == "dig"
        assert world.actions == [("dig", None)]


class TestHandlers:
    """Tests for individual handler behavior."""

    def test_perform_returns_raw_result(self, world: FakeWorld) -> None:
        """Test that an explicit False from the world is passed through."""
        world.action_results["gather"] = False
        handlers = make_handlers(world)

        assert handlers.dispatch(goal(GoalKind.GATHER_RESOURCES)) is False

    def test_errors_propagate(self, world: FakeWorld) -> None:
        """Test that world errors reach the caller."""
        world.action_results["mine"] = WorldInteractionError("block out of reach")
        handlers = make_handlers(world)

        with pytest.raises(WorldInteractionError, match="out of reach"):
            handlers.dispatch(goal(GoalKind.MINE_RESOURCES))

    def test_heal_without_food_fails(self, world: FakeWorld) -> None:
        """Test that healing with nothing to eat is an explicit failure."""
        world.inventory = InventorySummary(has_food=False)
        handlers = make_handlers(world)

        assert handlers.dispatch(goal(GoalKind.HEAL)) is False
        assert world.actions == []

    def test_heal_eats(self, world: FakeWorld) -> None:
        """Test that healing consumes food."""
        handlers = make_handlers(world)

        handlers.dispatch(goal(GoalKind.HEAL))

        assert world.actions == [("consume", "food")]

    def test_find_food_hunts_when_nothing_to_eat(self, world: FakeWorld) -> None:
        """Test that find_food travels and hunts when the inventory has no food."""
        world.inventory = InventorySummary(has_food=False)
        handlers = make_handlers(world)

        handlers.dispatch(goal(GoalKind.FIND_FOOD))

        assert len(world.navigations) == 1
        assert world.actions == [("hunt", None)]

    def test_craft_basic_tools_crafts_missing_only(self, world: FakeWorld) -> None:
        """Test that only missing tools are crafted."""
        world.inventory = InventorySummary(has_pickaxe=True, has_axe=False)
        handlers = make_handlers(world)

        assert handlers.dispatch(goal(GoalKind.CRAFT_BASIC_TOOLS)) is True
        assert world.actions == [("craft_tools", "axe")]

    def test_craft_basic_tools_stops_on_failure(self, world: FakeWorld) -> None:
        """Test that a failed craft fails the goal."""
        world.inventory = InventorySummary()
        world.action_results["craft_tools"] = False
        handlers = make_handlers(world)

        assert handlers.dispatch(goal(GoalKind.CRAFT_BASIC_TOOLS)) is False
        assert world.actions == [("craft_tools", "pickaxe")]

    def test_upgrade_requires_tools(self, world: FakeWorld) -> None:
        """Test that upgrading without basic tools fails."""
        world.inventory = InventorySummary()
        handlers = make_handlers(world)

        assert handlers.dispatch(goal(GoalKind.UPGRADE_TOOLS)) is False

    def test_explore_navigation_timeout_propagates(self, world: FakeWorld) -> None:
        """Test that navigation timeouts surface from exploration."""
        world.navigation_error = NavigationTimeout()
        handlers = make_handlers(world)

        with pytest.raises(NavigationTimeout):
            handlers.dispatch(goal(GoalKind.EXPLORE_WORLD))
        assert world.actions == []

    def test_idle_explore_wanders_nearby(self, world: FakeWorld) -> None:
        """Test that idle exploration moves within a quarter of the explore radius."""
        handlers = make_handlers(world)

        assert handlers.dispatch(goal(GoalKind.IDLE_EXPLORE)) is True
        point, _radius = world.navigations[0]
        assert world.position.distance_to(point) <= 25.0 + 1e-6
