"""Threat assessment and retreat/engagement control."""

from wayfarer.threat.assessor import ThreatAssessor
from wayfarer.threat.retreat import RetreatController, escape_vector

__all__ = ["RetreatController", "ThreatAssessor", "escape_vector"]
