"""Threat scoring, situation classification and danger-zone memory.

Each perceived entity of a known hostile category gets a static danger
score. Its threat level decays linearly with distance over the scan radius:

    threat_level = danger_score * max(0, (scan_radius - distance) / scan_radius)

The aggregate situation is classified by a fixed rule order (first match
wins): critical radius, crowding, total score, single fightable threat,
other immediate threats, then LOW/SAFE.

Concluded encounters are remembered per horizontal grid cell so route
planners can avoid repeat trouble spots.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from collections.abc import Callable, Iterable

from wayfarer.config.loader import ThreatConfig
from wayfarer.models.threats import (
    DangerZoneEntry,
    EncounterOutcome,
    ThreatEncounter,
    ThreatLevel,
    ThreatRecord,
    ThreatSituation,
)
from wayfarer.models.world import PerceivedEntity, Position
from wayfarer.observer.streaming import EventStream

logger = logging.getLogger(__name__)

AVOIDANCE_WAYPOINTS = 3
AVOIDANCE_RADIUS = 16.0
AVOIDANCE_PUSH = 10.0


class ThreatAssessor:
    """Scores hostile entities and remembers where encounters happened."""

    def __init__(
        self,
        config: ThreatConfig | None = None,
        clock: Callable[[], float] = time.time,
        encounter_stream: EventStream | None = None,
    ) -> None:
        """Initialize the assessor.

        Args:
            config: Radii, thresholds and the danger score table.
            clock: Wall-clock source in seconds, used for zone expiry.
            encounter_stream: Stream that receives every `ThreatEncounter`.
        """
        self._config = config or ThreatConfig()
        self._clock = clock
        self.encounter_stream = encounter_stream or EventStream("threat-encounters")
        self._lock = threading.Lock()
        self._zones: dict[tuple[int, int], DangerZoneEntry] = {}
        self._history: deque[ThreatEncounter] = deque(maxlen=self._config.encounter_history_size)
        self._last_situation = ThreatSituation()

    @property
    def config(self) -> ThreatConfig:
        return self._config

    @property
    def last_situation(self) -> ThreatSituation:
        """Situation from the most recent `assess()` call."""
        with self._lock:
            return self._last_situation

    # --- scoring ---

    def danger_score(self, category: str) -> float | None:
        """Static danger score for a category, or None if it is not hostile."""
        return self._config.danger_scores.get(category)

    def threat_level(self, danger_score: float, distance: float) -> float:
        """Distance-decayed threat level."""
        radius = self._config.scan_radius
        return danger_score * max(0.0, (radius - distance) / radius)

    def scan(
        self, self_position: Position, entities: Iterable[PerceivedEntity]
    ) -> list[ThreatRecord]:
        """Score hostile entities within the scan radius.

        Unknown categories are ignored. Records are sorted by threat level,
        highest first.
        """
        records = []
        for entity in entities:
            score = self.danger_score(entity.category)
            if score is None:
                continue
            distance = self_position.distance_to(entity.position)
            if distance > self._config.scan_radius:
                continue
            records.append(
                ThreatRecord(
                    entity_id=entity.entity_id,
                    category=entity.category,
                    position=entity.position,
                    distance=distance,
                    danger_score=score,
                    threat_level=self.threat_level(score, distance),
                )
            )
        records.sort(key=lambda r: r.threat_level, reverse=True)
        return records

    def assess(self, records: list[ThreatRecord]) -> ThreatSituation:
        """Classify a set of threat records into a situation."""
        cfg = self._config
        threats = sorted(records, key=lambda r: r.threat_level, reverse=True)
        immediate = [r for r in threats if r.distance <= cfg.immediate_radius]
        critical = [r for r in threats if r.distance <= cfg.critical_radius]
        total = sum(r.threat_level for r in threats)

        if critical:
            level, retreat, fight = ThreatLevel.CRITICAL, True, False
        elif len(immediate) >= 3:
            level, retreat, fight = ThreatLevel.HIGH, True, False
        elif total > cfg.total_score_ceiling:
            level, retreat, fight = ThreatLevel.HIGH, True, False
        elif len(immediate) == 1 and immediate[0].danger_score < cfg.fightable_threshold:
            level, retreat, fight = ThreatLevel.MEDIUM, False, True
        elif immediate:
            retreat = any(r.danger_score >= cfg.fightable_threshold for r in immediate)
            level, fight = ThreatLevel.MEDIUM, not retreat
        else:
            level = ThreatLevel.LOW if threats else ThreatLevel.SAFE
            retreat, fight = False, False

        situation = ThreatSituation(
            level=level,
            total_score=total,
            threats=threats,
            immediate=immediate,
            critical=critical,
            should_retreat=retreat,
            can_fight=fight,
            most_dangerous=threats[0] if threats else None,
        )
        with self._lock:
            previous = self._last_situation.level
            self._last_situation = situation
        if level != previous:
            logger.info(
                f"[THREAT] {previous} -> {level} "
                f"({len(threats)} threats, {len(immediate)} immediate, total {total:.1f})"
            )
        return situation

    def evaluate(
        self, self_position: Position, entities: Iterable[PerceivedEntity]
    ) -> ThreatSituation:
        """Scan and assess in one step."""
        return self.assess(self.scan(self_position, entities))

    def should_preemptively_retreat(
        self, health_percent: float, situation: ThreatSituation | None = None
    ) -> bool:
        """Predict whether to evade before taking damage.

        Args:
            health_percent: Current health as a percentage (0-100).
            situation: Situation to judge; defaults to the last assessed one.
        """
        cfg = self._config
        situation = situation if situation is not None else self.last_situation

        if situation.should_retreat:
            return True
        if health_percent < cfg.low_health_percent and situation.immediate:
            logger.info("[THREAT] Preemptive retreat: low health with threats nearby")
            return True
        for record in situation.threats:
            if record.category in cfg.explosive_categories and record.distance < cfg.explosive_band:
                logger.info(f"[THREAT] Preemptive retreat: {record.category} approaching")
                return True
        approaching = [
            r
            for r in situation.threats
            if r.danger_score >= cfg.high_danger_threshold and r.distance < cfg.high_danger_band
        ]
        if len(approaching) >= 2:
            logger.info("[THREAT] Preemptive retreat: multiple high-danger threats approaching")
            return True
        return False

    # --- danger-zone memory ---

    def cell_key(self, position: Position) -> tuple[int, int]:
        """Horizontal grid cell containing a position."""
        size = self._config.danger_zone_cell_size
        return math.floor(position.x / size), math.floor(position.z / size)

    def _expired(self, entry: DangerZoneEntry, now: float) -> bool:
        return now - entry.last_seen > self._config.danger_zone_expiry_seconds

    def record_encounter(
        self, threat: ThreatRecord, outcome: EncounterOutcome
    ) -> ThreatEncounter:
        """Remember a concluded encounter and publish it."""
        encounter = ThreatEncounter(
            category=threat.category, position=threat.position, outcome=outcome
        )
        key = self.cell_key(threat.position)
        now = self._clock()
        with self._lock:
            self._history.append(encounter)
            entry = self._zones.get(key)
            if entry is not None and self._expired(entry, now):
                entry = None
            count = entry.encounter_count + 1 if entry is not None else 1
            self._zones[key] = DangerZoneEntry(encounter_count=count, last_seen=now)
        if count == self._config.danger_zone_min_encounters:
            logger.info(f"[THREAT] Cell {key} is now a danger zone")
        self.encounter_stream.publish(encounter)
        return encounter

    def is_danger_zone(self, position: Position) -> bool:
        """Check whether a position lies in a cell with repeated recent encounters."""
        key = self.cell_key(position)
        with self._lock:
            entry = self._zones.get(key)
            if entry is None:
                return False
            if self._expired(entry, self._clock()):
                del self._zones[key]
                return False
            return entry.encounter_count >= self._config.danger_zone_min_encounters

    def prune_zones(self) -> int:
        """Drop expired cells and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._zones.items() if self._expired(entry, now)]
            for key in expired:
                del self._zones[key]
        return len(expired)

    def zone_entry(self, position: Position) -> DangerZoneEntry | None:
        with self._lock:
            return self._zones.get(self.cell_key(position))

    def encounter_history(self) -> list[ThreatEncounter]:
        with self._lock:
            return list(self._history)

    # --- routing ---

    def avoidance_route(
        self,
        origin: Position,
        destination: Position,
        records: list[ThreatRecord] | None = None,
    ) -> list[Position]:
        """Waypoints from origin to destination that bend away from threats.

        Returns just the destination when there are no threats. Otherwise
        three interpolated waypoints are each pushed away from any threat
        closer than 16 units, followed by the destination.
        """
        threats = records if records is not None else self.last_situation.threats
        if not threats:
            return [destination]

        waypoints = []
        for i in range(1, AVOIDANCE_WAYPOINTS + 1):
            t = i / (AVOIDANCE_WAYPOINTS + 1)
            point = Position(
                x=origin.x + (destination.x - origin.x) * t,
                y=origin.y + (destination.y - origin.y) * t,
                z=origin.z + (destination.z - origin.z) * t,
            )
            for threat in threats:
                if point.distance_to(threat.position) >= AVOIDANCE_RADIUS:
                    continue
                dx, dz = threat.position.horizontal_offset_to(point)
                length = math.hypot(dx, dz)
                if length == 0:
                    dx, dz, length = 1.0, 0.0, 1.0
                point = point.offset(dx=dx / length * AVOIDANCE_PUSH, dz=dz / length * AVOIDANCE_PUSH)
            waypoints.append(point)
        waypoints.append(destination)
        return waypoints

    def stats(self) -> dict[str, int]:
        """Encounter and zone counts."""
        with self._lock:
            return {
                "total_encounters": len(self._history),
                "tracked_cells": len(self._zones),
                "danger_zones": sum(
                    1
                    for entry in self._zones.values()
                    if entry.encounter_count >= self._config.danger_zone_min_encounters
                ),
                "current_threats": self._last_situation.threat_count,
            }
