"""Tests for error classification and escalation."""

from __future__ import annotations

import pytest

from wayfarer.interfaces.advisory import AdvisoryError
from wayfarer.interfaces.notifications import Notifier
from wayfarer.interfaces.world import NavigationTimeout, WorldInteractionError
from wayfarer.runtime.recovery import ErrorClass, ErrorEscalator, classify_error


class RecordingNotifier(Notifier):
    """Notifier that keeps every message."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, text: str) -> None:
        self.messages.append(text)


class BrokenNotifier(Notifier):
    """Notifier whose delivery always fails."""

    def notify(self, text: str) -> None:
        raise RuntimeError("webhook down")


class TestClassifyError:
    """Tests for classify_error."""

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (NavigationTimeout(), ErrorClass.PATHFINDING),
            (AdvisoryError("rate limited"), ErrorClass.ADVISORY),
            (WorldInteractionError("bad packet", transient=True), ErrorClass.PROTOCOL),
            (ConnectionResetError("peer reset"), ErrorClass.CONNECTION),
            (RuntimeError("target unreachable"), ErrorClass.PATHFINDING),
            (RuntimeError("inventory full"), ErrorClass.INVENTORY),
            (RuntimeError("cannot craft pickaxe"), ErrorClass.CRAFTING),
            (RuntimeError("attack missed"), ErrorClass.COMBAT),
            (RuntimeError("server disconnect"), ErrorClass.CONNECTION),
            (RuntimeError("ore not found"), ErrorClass.RESOURCE_NOT_FOUND),
            (RuntimeError("protocol mismatch"), ErrorClass.PROTOCOL),
            (RuntimeError("something odd"), ErrorClass.UNKNOWN),
        ],
    )
    def test_classification(self, error: BaseException, expected: ErrorClass) -> None:
        """Test typed and message-based classification."""
        assert classify_error(error) == expected


class TestErrorEscalator:
    """Tests for ErrorEscalator."""

    def test_escalates_once_at_threshold(self) -> None:
        """Test a single notification when a class reaches the threshold."""
        notifier = RecordingNotifier()
        escalator = ErrorEscalator(notifier, threshold=3)

        for _ in range(5):
            escalator.handle(RuntimeError("inventory full"), context="manage_inventory")

        assert escalator.count(ErrorClass.INVENTORY) == 5
        assert len(notifier.messages) == 1
        assert "inventory" in notifier.messages[0]
        assert escalator.escalated_classes() == {ErrorClass.INVENTORY}

    def test_classes_escalate_independently(self) -> None:
        """Test that each class has its own counter."""
        notifier = RecordingNotifier()
        escalator = ErrorEscalator(notifier, threshold=2)

        escalator.handle(RuntimeError("inventory full"))
        escalator.handle(RuntimeError("attack missed"))
        escalator.handle(RuntimeError("attack missed"))

        assert escalator.escalated_classes() == {ErrorClass.COMBAT}
        assert len(notifier.messages) == 1

    def test_handle_returns_class(self) -> None:
        """Test that handle reports how the error was counted."""
        escalator = ErrorEscalator()
        assert escalator.handle(NavigationTimeout()) == ErrorClass.PATHFINDING

    def test_broken_notifier_is_contained(self) -> None:
        """Test that a failing notifier never raises."""
        escalator = ErrorEscalator(BrokenNotifier(), threshold=1)
        assert escalator.handle(RuntimeError("boom")) == ErrorClass.UNKNOWN

    def test_recent_errors(self) -> None:
        """Test the bounded error log."""
        escalator = ErrorEscalator()
        for i in range(3):
            escalator.handle(RuntimeError(f"error {i}"), context=f"ctx{i}")

        recent = escalator.recent_errors(limit=2)

        assert [r.message for r in recent] == ["error 1", "error 2"]
        assert recent[-1].context == "ctx2"
        assert recent[-1].error_type == "RuntimeError"

    def test_stats_and_report(self) -> None:
        """Test the summary statistics and report text."""
        notifier = RecordingNotifier()
        escalator = ErrorEscalator(notifier, threshold=2)
        escalator.handle(RuntimeError("attack missed"))
        escalator.handle(RuntimeError("attack missed"))
        escalator.handle(RuntimeError("inventory full"))

        stats = escalator.stats()
        report = escalator.report()

        assert stats["total_errors"] == 3
        assert stats["top_errors"][0] == {"type": "combat", "count": 2}
        assert stats["escalated"] == ["combat"]
        assert "3 total" in report
        assert "Critical: combat" in report
        assert notifier.messages[-1] == report

    def test_report_without_errors(self) -> None:
        """Test the report for a clean session."""
        assert ErrorEscalator().report() == "No errors in this session"

    def test_reset_rearms_escalation(self) -> None:
        """Test that reset allows a class to escalate again."""
        notifier = RecordingNotifier()
        escalator = ErrorEscalator(notifier, threshold=1)
        escalator.handle(RuntimeError("boom"))

        escalator.reset()
        escalator.handle(RuntimeError("boom"))

        assert len(notifier.messages) == 2

    def test_invalid_threshold(self) -> None:
        """Test that the threshold must be positive."""
        with pytest.raises(ValueError):
            ErrorEscalator(threshold=0)
