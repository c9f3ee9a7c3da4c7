"""CLI entrypoint for running the decision core against the sandbox world."""

from __future__ import annotations

import argparse
import logging
import random
import sys

from wayfarer.cli.helpers import _configure_logging, _log_summary
from wayfarer.cli.options import LogFormat, build_arg_parser
from wayfarer.config.loader import Config, load_config
from wayfarer.config.secrets import load_environment_secrets
from wayfarer.core.advisory import LLMAdvisoryService
from wayfarer.core.scheduler import GoalScheduler
from wayfarer.environment.sandbox import SandboxWorld
from wayfarer.interfaces.advisory import AdvisoryService
from wayfarer.observer.notifier import LoggingNotifier

logger = logging.getLogger(__name__)


def _build_advisory(config: Config, force: bool = False) -> AdvisoryService | None:
    """Create the advisory service when enabled and a key is available."""
    if not (config.advisory.enabled or force):
        return None
    service = LLMAdvisoryService.from_config(config.advisory)
    if not service.is_ready():
        logger.warning(
            "[BOOT] Advisory enabled but no %s API key found; using local ranking only",
            service.provider,
        )
        return None
    logger.info("[BOOT] Advisory service: %s/%s", service.provider, service.model)
    return service


def _create_scheduler(args: argparse.Namespace) -> tuple[GoalScheduler, SandboxWorld]:
    """Assemble a scheduler wired to a seeded sandbox world."""
    config = load_config(args.config)
    log_format = getattr(args, "log_format", None) or config.logging.format
    _configure_logging(level=str(config.logging.level), log_format=str(log_format))

    seed = args.seed if args.seed is not None else config.goals.seed
    world = SandboxWorld(seed=seed)
    scheduler = GoalScheduler(
        perception=world,
        world=world,
        config=config,
        advisory=_build_advisory(config, force=bool(getattr(args, "advisory", False))),
        notifier=LoggingNotifier(),
        rng=random.Random(seed),
        clock=world.clock,
        sleep=world.sleep,
        enable_signal_handlers=False,
    )
    return scheduler, world


def run_command(args: argparse.Namespace) -> int:
    """Execute the `run` command.

    Steps the threat tick and the goal tick by hand on simulated time, so a
    run is reproducible for a given seed (advisory calls aside).
    """
    if args.command != "run":
        raise ValueError(f"Unsupported command: {args.command}")

    scheduler, world = _create_scheduler(args)
    sched = scheduler.config.scheduler
    threat_ticks = max(1, int(args.threat_ticks_per_goal))
    scheduler.metrics.start()
    try:
        for _ in range(int(args.goal_ticks)):
            for _ in range(threat_ticks):
                scheduler.run_threat_tick()
                world.advance(sched.threat_tick_seconds)
            scheduler.run_goal_tick()
            world.advance(sched.goal_tick_seconds)
    finally:
        scheduler.router.shutdown()

    _log_summary(scheduler.metrics.get_metrics(), scheduler.router.stats())
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint function."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    # Bootstrap logger before config loading.
    _configure_logging(
        level="INFO",
        log_format=str(getattr(args, "log_format", None) or LogFormat.READABLE.value),
    )

    try:
        if args.command == "run":
            load_environment_secrets(strict=False)
            return run_command(args)
        raise ValueError(f"Unsupported command: {args.command}")
    except Exception as exc:
        logger.error("[BOOT] CLI execution failed: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
