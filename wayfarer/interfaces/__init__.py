"""Interface definitions for the collaborators of the decision core.

The core depends only on these interfaces so every collaborator can be
swapped for a test double.
"""

from wayfarer.interfaces.advisory import AdvisoryError, AdvisoryService, AdvisorySuggestion
from wayfarer.interfaces.notifications import Notifier
from wayfarer.interfaces.world import (
    NavigationTimeout,
    Perception,
    WayfarerError,
    WorldInteraction,
    WorldInteractionError,
)

__all__ = [
    "AdvisoryError",
    "AdvisoryService",
    "AdvisorySuggestion",
    "NavigationTimeout",
    "Notifier",
    "Perception",
    "WayfarerError",
    "WorldInteraction",
    "WorldInteractionError",
]
