"""Wayfarer: autonomous decision core for a persistent game-playing agent.

Subpackages:
- config: Configuration loading and runtime updates
- interfaces: Abstract collaborators (world, perception, advisory, notifier)
- models: Shared pydantic data models
- strategy: Goal generation, failure tracking, goal dispatch
- threat: Threat assessment and retreat/combat state machine
- core: Decision routing, scheduler, metrics
- runtime: Error classification and escalation
- observer: Event streams and notifiers
- environment: Sandbox world for local runs
- cli: Command-line entrypoint
"""

__version__ = "0.1.0"
