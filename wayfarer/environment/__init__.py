"""Execution environments for the decision core.

- SandboxWorld: seeded in-process simulation implementing Perception and
  WorldInteraction, used by the CLI and tests
"""

from wayfarer.environment.sandbox import SandboxConfig, SandboxWorld

__all__ = ["SandboxConfig", "SandboxWorld"]
