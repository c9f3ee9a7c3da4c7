"""Notification channel interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Notifier(ABC):
    """Fire-and-forget notification channel.

    Implementations must not raise; delivery failures are their own concern.
    """

    @abstractmethod
    def notify(self, text: str) -> None:
        """Deliver a human-readable message.

        Args:
            text: Message text.
        """
        ...
