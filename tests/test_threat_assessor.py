"""Tests for threat scoring, classification and danger-zone memory."""

from __future__ import annotations

import pytest
from conftest import FakeClock

from wayfarer.config.loader import ThreatConfig
from wayfarer.models.threats import EncounterOutcome, ThreatLevel, ThreatRecord
from wayfarer.models.world import PerceivedEntity, Position
from wayfarer.observer.streaming import EventStream
from wayfarer.threat.assessor import ThreatAssessor

ORIGIN = Position(x=0.0, y=64.0, z=0.0)


def entity(category: str, distance: float, index: int = 0) -> PerceivedEntity:
    """An entity `distance` units east of the origin."""
    return PerceivedEntity(
        entity_id=f"{category}-{index}-{distance}",
        category=category,
        position=ORIGIN.offset(dx=distance),
    )


def record(assessor: ThreatAssessor, category: str, distance: float) -> ThreatRecord:
    return assessor.scan(ORIGIN, [entity(category, distance)])[0]


class TestScoring:
    """Tests for per-entity scoring."""

    def test_linear_falloff(self) -> None:
        """Test the distance falloff over the scan radius."""
        assessor = ThreatAssessor()

        assert assessor.threat_level(100.0, 0.0) == 100.0
        assert assessor.threat_level(100.0, 32.0) == pytest.approx(50.0)
        assert assessor.threat_level(100.0, 64.0) == 0.0
        assert assessor.threat_level(100.0, 80.0) == 0.0

    def test_closer_is_never_less_threatening(self) -> None:
        """Test monotonicity in distance."""
        assessor = ThreatAssessor()
        levels = [assessor.threat_level(60.0, d) for d in range(0, 70, 2)]
        assert levels == sorted(levels, reverse=True)

    def test_more_dangerous_is_never_less_threatening(self) -> None:
        """Test monotonicity in danger category."""
        assessor = ThreatAssessor()
        for distance in (0.0, 10.0, 40.0, 63.0):
            assert assessor.threat_level(100.0, distance) >= assessor.threat_level(40.0, distance)

    def test_scan_ignores_unknown_and_distant(self) -> None:
        """Test that non-hostile and out-of-range entities are skipped."""
        assessor = ThreatAssessor()

        records = assessor.scan(
            ORIGIN,
            [entity("cow", 5.0), entity("zombie", 100.0), entity("zombie", 10.0)],
        )

        assert [r.category for r in records] == ["zombie"]
        assert records[0].distance == pytest.approx(10.0)
        assert records[0].danger_score == 40.0

    def test_scan_sorted_by_threat_level(self) -> None:
        """Test that scan results are highest threat first."""
        assessor = ThreatAssessor()

        records = assessor.scan(
            ORIGIN, [entity("zombie", 30.0), entity("creeper", 30.0), entity("zombie", 5.0)]
        )

        levels = [r.threat_level for r in records]
        assert levels == sorted(levels, reverse=True)
        assert records[0].category == "creeper"


class TestAssess:
    """Tests for situation classification."""

    def test_empty_is_safe(self) -> None:
        """Test that no threats is SAFE."""
        situation = ThreatAssessor().evaluate(ORIGIN, [])

        assert situation.level == ThreatLevel.SAFE
        assert situation.should_retreat is False
        assert situation.can_fight is False
        assert situation.most_dangerous is None

    def test_creeper_inside_critical_radius(self) -> None:
        """Test that any threat inside the critical radius is CRITICAL."""
        situation = ThreatAssessor().evaluate(ORIGIN, [entity("creeper", 6.0)])

        assert situation.level == ThreatLevel.CRITICAL
        assert situation.should_retreat is True
        assert situation.can_fight is False
        assert len(situation.critical) == 1

    def test_crowding_is_high(self) -> None:
        """Test that three immediate threats force a retreat."""
        entities = [entity("zombie", 12.0, i) for i in range(3)]

        situation = ThreatAssessor().evaluate(ORIGIN, entities)

        assert situation.level == ThreatLevel.HIGH
        assert situation.should_retreat is True

    def test_total_score_ceiling_is_high(self) -> None:
        """Test that distant but heavy threats add up to HIGH."""
        entities = [entity("creeper", 20.0), entity("ravager", 20.0), entity("skeleton", 20.0)]

        situation = ThreatAssessor().evaluate(ORIGIN, entities)

        assert situation.immediate == []
        assert situation.total_score > 150
        assert situation.level == ThreatLevel.HIGH
        assert situation.should_retreat is True

    def test_single_weak_threat_is_fightable(self) -> None:
        """Test that one immediate threat below the fightable threshold can be fought."""
        situation = ThreatAssessor().evaluate(ORIGIN, [entity("zombie", 12.0)])

        assert situation.level == ThreatLevel.MEDIUM
        assert situation.can_fight is True
        assert situation.should_retreat is False

    def test_single_strong_threat_retreats(self) -> None:
        """Test that one immediate threat at or above the threshold triggers a retreat."""
        situation = ThreatAssessor().evaluate(ORIGIN, [entity("skeleton", 12.0)])

        assert situation.level == ThreatLevel.MEDIUM
        assert situation.should_retreat is True
        assert situation.can_fight is False

    def test_two_weak_threats_are_fightable(self) -> None:
        """Test that two weak immediate threats stay MEDIUM and fightable."""
        entities = [entity("zombie", 12.0, 0), entity("zombie", 14.0, 1)]

        situation = ThreatAssessor().evaluate(ORIGIN, entities)

        assert situation.level == ThreatLevel.MEDIUM
        assert situation.should_retreat is False
        assert situation.can_fight is True

    def test_distant_threats_are_low(self) -> None:
        """Test that threats outside the immediate radius are LOW."""
        situation = ThreatAssessor().evaluate(ORIGIN, [entity("zombie", 40.0)])

        assert situation.level == ThreatLevel.LOW
        assert situation.threat_count == 1

    def test_last_situation_is_stored(self) -> None:
        """Test that the latest assessment is remembered."""
        assessor = ThreatAssessor()
        situation = assessor.evaluate(ORIGIN, [entity("zombie", 40.0)])
        assert assessor.last_situation is situation


class TestPreemptiveRetreat:
    """Tests for should_preemptively_retreat."""

    def test_follows_situation(self) -> None:
        """Test that a situation demanding retreat always retreats."""
        assessor = ThreatAssessor()
        situation = assessor.evaluate(ORIGIN, [entity("creeper", 6.0)])
        assert assessor.should_preemptively_retreat(100.0, situation) is True

    def test_low_health_with_immediate_threat(self) -> None:
        """Test retreating from a fightable threat when health is low."""
        assessor = ThreatAssessor()
        situation = assessor.evaluate(ORIGIN, [entity("zombie", 12.0)])

        assert assessor.should_preemptively_retreat(100.0, situation) is False
        assert assessor.should_preemptively_retreat(30.0, situation) is True

    def test_explosive_within_band(self) -> None:
        """Test that an explosive category inside its band triggers retreat."""
        assessor = ThreatAssessor(ThreatConfig(explosive_categories=["zombie"]))
        situation = assessor.evaluate(ORIGIN, [entity("zombie", 10.0)])

        assert situation.should_retreat is False
        assert assessor.should_preemptively_retreat(100.0, situation) is True

    def test_multiple_high_danger_approaching(self) -> None:
        """Test that two high-danger threats inside the band trigger retreat."""
        assessor = ThreatAssessor()
        one = assessor.evaluate(ORIGIN, [entity("skeleton", 20.0)])
        assert assessor.should_preemptively_retreat(100.0, one) is False

        two = assessor.evaluate(ORIGIN, [entity("skeleton", 20.0, 0), entity("skeleton", 22.0, 1)])

        assert two.should_retreat is False
        assert assessor.should_preemptively_retreat(100.0, two) is True

    def test_defaults_to_last_situation(self) -> None:
        """Test that the last assessed situation is used when none is passed."""
        assessor = ThreatAssessor()
        assessor.evaluate(ORIGIN, [entity("creeper", 4.0)])
        assert assessor.should_preemptively_retreat(100.0) is True


class TestDangerZones:
    """Tests for danger-zone memory."""

    def test_cell_key(self) -> None:
        """Test horizontal grid cells."""
        assessor = ThreatAssessor()
        assert assessor.cell_key(Position(x=17.0, y=200.0, z=-1.0)) == (1, -1)
        assert assessor.cell_key(Position(x=0.0, z=15.9)) == (0, 0)

    def test_zone_after_repeated_encounters(self) -> None:
        """Test that a cell becomes a danger zone after three encounters."""
        assessor = ThreatAssessor(clock=FakeClock())
        threat = record(assessor, "zombie", 10.0)

        assessor.record_encounter(threat, EncounterOutcome.RETREAT)
        assessor.record_encounter(threat, EncounterOutcome.WIN)
        assert assessor.is_danger_zone(threat.position) is False

        assessor.record_encounter(threat, EncounterOutcome.RETREAT)
        assert assessor.is_danger_zone(threat.position) is True
        assert assessor.stats()["danger_zones"] == 1

    def test_zone_expires(self) -> None:
        """Test that a zone with no recent encounters is forgotten."""
        clock = FakeClock()
        assessor = ThreatAssessor(clock=clock)
        threat = record(assessor, "zombie", 10.0)
        for _ in range(3):
            assessor.record_encounter(threat, EncounterOutcome.RETREAT)

        clock.advance(601.0)

        assert assessor.is_danger_zone(threat.position) is False
        assert assessor.zone_entry(threat.position) is None

    def test_prune_zones(self) -> None:
        """Test bulk removal of expired cells."""
        clock = FakeClock()
        assessor = ThreatAssessor(clock=clock)
        assessor.record_encounter(record(assessor, "zombie", 10.0), EncounterOutcome.WIN)
        clock.advance(700.0)
        assessor.record_encounter(record(assessor, "zombie", 50.0), EncounterOutcome.WIN)

        assert assessor.prune_zones() == 1
        assert assessor.stats()["tracked_cells"] == 1

    def test_stale_count_restarts(self) -> None:
        """Test that an encounter in a long-quiet cell starts a fresh count."""
        clock = FakeClock()
        assessor = ThreatAssessor(clock=clock)
        threat = record(assessor, "zombie", 10.0)
        assessor.record_encounter(threat, EncounterOutcome.RETREAT)
        assessor.record_encounter(threat, EncounterOutcome.RETREAT)

        clock.advance(3600.0)
        assessor.record_encounter(threat, EncounterOutcome.RETREAT)

        assert assessor.is_danger_zone(threat.position) is False
        entry = assessor.zone_entry(threat.position)
        assert entry is not None and entry.encounter_count == 1

    def test_prune_keeps_memory_bounded(self) -> None:
        """Test that cells visited once each do not accumulate."""
        clock = FakeClock()
        assessor = ThreatAssessor(clock=clock)
        for i in range(50):
            threat = record(assessor, "zombie", 10.0)
            moved = threat.model_copy(update={"position": threat.position.offset(dx=i * 16.0)})
            assessor.record_encounter(moved, EncounterOutcome.WIN)
            clock.advance(700.0)

        assert assessor.prune_zones() == 50
        assert assessor.stats()["tracked_cells"] == 0

    def test_encounters_are_published(self) -> None:
        """Test that encounters reach the encounter stream."""
        stream = EventStream("encounters")
        assessor = ThreatAssessor(encounter_stream=stream)

        assessor.record_encounter(record(assessor, "spider", 10.0), EncounterOutcome.RETREAT)

        events = stream.get_events_since(0)
        assert len(events) == 1
        assert events[0]["payload"]["category"] == "spider"
        assert events[0]["payload"]["outcome"] == "retreat"

    def test_history_is_bounded(self) -> None:
        """Test that the encounter history keeps only the newest entries."""
        assessor = ThreatAssessor(ThreatConfig(encounter_history_size=2))
        for category in ("zombie", "spider", "skeleton"):
            assessor.record_encounter(record(assessor, category, 10.0), EncounterOutcome.WIN)

        history = assessor.encounter_history()
        assert [e.category for e in history] == ["spider", "skeleton"]
        assert assessor.stats()["total_encounters"] == 2


class TestAvoidanceRoute:
    """Tests for avoidance_route."""

    def test_no_threats_goes_direct(self) -> None:
        """Test that the route is just the destination when it is clear."""
        destination = Position(x=40.0, y=64.0)
        assert ThreatAssessor().avoidance_route(ORIGIN, destination, records=[]) == [destination]

    def test_waypoints_bend_away(self) -> None:
        """Test that waypoints near a threat are pushed away from it."""
        assessor = ThreatAssessor()
        threat = record(assessor, "zombie", 20.0)
        destination = ORIGIN.offset(dx=40.0)

        route = assessor.avoidance_route(ORIGIN, destination, records=[threat])

        assert len(route) == 4
        assert route[-1] == destination
        for waypoint in route[:3]:
            assert waypoint.distance_to(threat.position) >= 10.0

    def test_uses_last_situation_by_default(self) -> None:
        """Test that the last assessed threats are avoided when none are given."""
        assessor = ThreatAssessor()
        assessor.evaluate(ORIGIN, [entity("zombie", 20.0)])

        route = assessor.avoidance_route(ORIGIN, ORIGIN.offset(dx=40.0))

        assert len(route) == 4


class TestThreatConfig:
    """Tests for threat config validation."""

    def test_radii_must_nest(self) -> None:
        """Test that the critical radius cannot exceed the immediate radius."""
        with pytest.raises(ValueError, match="radii"):
            ThreatConfig(critical_radius=20.0, immediate_radius=16.0)
