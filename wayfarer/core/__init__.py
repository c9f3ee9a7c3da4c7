"""Core decision logic package.

This package provides:
- GoalScheduler: Orchestrates the goal tick and the threat tick
- SchedulerState: Lock-guarded retreat and queue state shared by both ticks
- DecisionRouter: Cache / advisory / local recommendation routing
- LLMAdvisoryService: Advisory service backed by Anthropic or OpenAI
- AdvisoryPrompts: Prompt templates for the advisory service
- AgentMetrics: Snapshot of collected metrics
- MetricsCollector: Metrics collection for monitoring
"""

from wayfarer.core.advisory import LLMAdvisoryService
from wayfarer.core.metrics import AgentMetrics, MetricsCollector
from wayfarer.core.prompts import AdvisoryPrompts
from wayfarer.core.router import DecisionRouter
from wayfarer.core.scheduler import GoalScheduler, LoopState, SchedulerError
from wayfarer.core.state import SchedulerState

__all__ = [
    "AdvisoryPrompts",
    "AgentMetrics",
    "DecisionRouter",
    "GoalScheduler",
    "LLMAdvisoryService",
    "LoopState",
    "MetricsCollector",
    "SchedulerError",
    "SchedulerState",
]
