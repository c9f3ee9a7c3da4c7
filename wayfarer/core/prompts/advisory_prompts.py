"""Prompt templates for the LLM advisory service.

Prompt versions are tracked so logged suggestions can be traced back to
the template that produced them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wayfarer.models.decisions import DecisionContext

PROMPT_VERSION = "1.0.0"

SYSTEM_PROMPT = """You are a strategic advisor for an autonomous survival-game agent.

The agent already has a ranked list of candidate goals produced by local rules.
Your job is to pick the single candidate that best serves long-term survival
and progress, given the agent's condition.

Priorities:
- Survival needs (food, health) before anything else
- Tools before projects that need them
- Avoid risky outdoor activity at night and when threats are nearby

You may only choose from the candidate list. Always respond in the exact JSON
format requested."""

SUGGESTION_PROMPT_TEMPLATE = """## Agent Condition

- Health: {health_percent:.0f}%
- Food: {food_percent:.0f}%
- Time of day: {time_of_day} ({period})
- Threats in range: {threat_count}
- Inventory fullness: {inventory_percent:.0f}%
- Has basic tools: {has_tools}

## Candidate Goals (local ranking, best first)
{candidates_section}

## Your Task

Choose the best goal from the candidates above.

Respond with a JSON object in this exact format:
{{
    "action": "one of the candidate goal names",
    "confidence": 0.8,
    "rationale": "One sentence explaining the choice"
}}

Respond with valid JSON only, no additional text."""


@dataclass
class AdvisoryPrompts:
    """Builds advisory prompts from decision contexts.

    Attributes:
        version: Prompt version string.
        system_prompt: System prompt for the LLM.
        suggestion_template: User prompt template.
    """

    version: str = PROMPT_VERSION
    system_prompt: str = SYSTEM_PROMPT
    suggestion_template: str = SUGGESTION_PROMPT_TEMPLATE

    def build_suggestion_prompt(self, context: DecisionContext) -> str:
        """Format the user prompt for one context."""
        if context.candidates:
            candidates_section = "\n".join(
                f"{i}. {identity}" for i, identity in enumerate(context.candidates, 1)
            )
        else:
            candidates_section = "(none)"

        return self.suggestion_template.format(
            health_percent=context.health_percent,
            food_percent=context.food_percent,
            time_of_day=context.time_of_day,
            period="night" if context.is_night else "day",
            threat_count=context.threat_count,
            inventory_percent=context.inventory_fullness * 100,
            has_tools="yes" if context.has_tools else "no",
            candidates_section=candidates_section,
        )
