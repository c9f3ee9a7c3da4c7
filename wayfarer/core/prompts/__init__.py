"""Versioned prompt templates for the advisory service."""

from wayfarer.core.prompts.advisory_prompts import (
    PROMPT_VERSION,
    SUGGESTION_PROMPT_TEMPLATE,
    SYSTEM_PROMPT,
    AdvisoryPrompts,
)

__all__ = [
    "PROMPT_VERSION",
    "SUGGESTION_PROMPT_TEMPLATE",
    "SYSTEM_PROMPT",
    "AdvisoryPrompts",
]
