"""Advisory service interface for optional strategic suggestions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from wayfarer.interfaces.world import WayfarerError

if TYPE_CHECKING:
    from wayfarer.models.decisions import DecisionContext


class AdvisoryError(WayfarerError):
    """Error raised when the advisory service cannot produce a suggestion."""

    pass


class AdvisorySuggestion:
    """A suggestion returned by the advisory service."""

    __slots__ = ("action", "confidence", "rationale")

    def __init__(self, action: str, confidence: float, rationale: str = "") -> None:
        """Initialize a suggestion.

        Args:
            action: Suggested goal identity.
            confidence: Confidence in the suggestion (0.0 to 1.0).
            rationale: Short explanation.
        """
        self.action = action
        self.confidence = confidence
        self.rationale = rationale

    def __repr__(self) -> str:
        return f"AdvisorySuggestion({self.action!r}, confidence={self.confidence:.2f})"


class AdvisoryService(ABC):
    """Abstract interface for a high-latency, possibly unreliable advisor.

    Callers must treat any exception as "no suggestion" and fall back to
    local heuristics.
    """

    @abstractmethod
    def suggest(self, context: DecisionContext, timeout: float) -> AdvisorySuggestion:
        """Suggest the next goal for a context snapshot.

        Args:
            context: Normalized decision context.
            timeout: Seconds the caller is willing to wait.

        Returns:
            The suggestion.

        Raises:
            AdvisoryError: If no suggestion could be produced.
        """
        ...

    def is_ready(self) -> bool:
        """Whether the service is configured and usable."""
        return True
