"""CLI option models and parser helpers."""

from __future__ import annotations

import argparse
from enum import StrEnum


class LogFormat(StrEnum):
    """CLI log formatter mode."""

    READABLE = "readable"
    JSON = "json"


def build_arg_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="wayfarer", description="Autonomous decision core for a game agent"
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run the decision core against the sandbox world")
    run_parser.add_argument("--config", type=str, default=None, help="Path to a YAML config file")
    run_parser.add_argument("--goal-ticks", type=int, default=50, help="Number of goal ticks to run")
    run_parser.add_argument(
        "--threat-ticks-per-goal",
        type=int,
        default=2,
        help="Threat ticks run before each goal tick",
    )
    run_parser.add_argument("--seed", type=int, default=None, help="Seed for the sandbox and goal generator")
    run_parser.add_argument(
        "--advisory",
        action="store_true",
        help="Enable the advisory service regardless of config",
    )
    run_parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=[fmt.value for fmt in LogFormat],
        help="Terminal log format (default: logging.format from config)",
    )

    return parser
