"""Shared helper utilities for CLI orchestration."""

from __future__ import annotations

import json
import logging

from wayfarer.cli.options import LogFormat
from wayfarer.core.metrics import AgentMetrics

logger = logging.getLogger(__name__)


class _JSONLogFormatter(logging.Formatter):
    """Compact JSON formatter for machine-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
        }
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=True)


def _configure_logging(
    level: str = "INFO",
    log_format: str = LogFormat.READABLE.value,
) -> None:
    """Configure process-wide logging with stable defaults."""
    normalized_level = level.upper()
    resolved_level = getattr(logging, normalized_level, logging.INFO)
    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not getattr(h, "_wayfarer_handler", False)]

    handler = logging.StreamHandler()
    handler._wayfarer_handler = True  # type: ignore[attr-defined]
    if log_format == LogFormat.JSON.value:
        formatter: logging.Formatter = _JSONLogFormatter(datefmt="%Y-%m-%dT%H:%M:%S")
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(threadName)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(resolved_level)

    # Third-party HTTP transport logs are noisy at INFO during advisory calls.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def _log_summary(metrics: AgentMetrics, router_stats: dict[str, int]) -> None:
    """Log a one-screen summary of a finished run."""
    logger.info(
        "[SUMMARY] goal_ticks=%d threat_ticks=%d dispatches=%d success_rate=%.0f%% transient=%d",
        metrics.goal_ticks,
        metrics.threat_ticks,
        metrics.dispatches_total,
        metrics.dispatch_success_rate * 100,
        metrics.dispatches_transient,
    )
    logger.info(
        "[SUMMARY] safety_blocks=%d retreats=%d engagements=%d (won %d) escalations=%d",
        metrics.safety_blocks,
        metrics.retreats,
        metrics.engagements,
        metrics.engagements_won,
        metrics.escalations,
    )
    if metrics.routes_by_source:
        logger.info("[SUMMARY] routes=%s router=%s", metrics.routes_by_source, router_stats)
    if metrics.errors_by_type:
        logger.info("[SUMMARY] errors=%s", metrics.errors_by_type)
