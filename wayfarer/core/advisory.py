"""LLM-backed advisory service.

Asks an Anthropic or OpenAI model to pick one goal from the locally ranked
candidates. Provider SDKs are imported lazily so the decision core runs
without them; a missing SDK or API key surfaces as `AdvisoryError`, which
the decision router treats like any other advisory failure.

Example:
    >>> from wayfarer.core.advisory import LLMAdvisoryService
    >>>
    >>> service = LLMAdvisoryService(provider="anthropic")
    >>> suggestion = service.suggest(context, timeout=2.0)
    >>> print(suggestion.action, suggestion.confidence)
"""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING, Any

from wayfarer.core.prompts import AdvisoryPrompts
from wayfarer.interfaces.advisory import AdvisoryError, AdvisoryService, AdvisorySuggestion

if TYPE_CHECKING:
    from wayfarer.config.loader import AdvisoryConfig
    from wayfarer.models.decisions import DecisionContext

logger = logging.getLogger(__name__)

VALID_PROVIDERS = {"anthropic", "openai"}

DEFAULT_MODELS = {
    "anthropic": "claude-3-haiku-20240307",
    "openai": "gpt-4o-mini",
}

API_KEY_VARIABLES = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


def _strip_code_fence(text: str) -> str:
    """Return the body of a markdown code fence, or the text unchanged."""
    text = text.strip()
    if not text.startswith("```"):
        return text
    body: list[str] = []
    inside = False
    for line in text.split("\n"):
        if line.startswith("```"):
            if inside:
                break
            inside = True
            continue
        if inside:
            body.append(line)
    return "\n".join(body)


def parse_suggestion(response: str) -> AdvisorySuggestion:
    """Parse a model response into a suggestion.

    Raises:
        AdvisoryError: If the response is not the expected JSON object.
    """
    try:
        data = json.loads(_strip_code_fence(response))
    except json.JSONDecodeError as e:
        raise AdvisoryError(f"Invalid JSON response: {e}") from e

    if not isinstance(data, dict):
        raise AdvisoryError("Advisory response is not a JSON object")

    action = str(data.get("action") or "").strip()
    if not action:
        raise AdvisoryError("Advisory response has no action")

    try:
        confidence = float(data.get("confidence", 0.5))
    except (TypeError, ValueError):
        confidence = 0.5
    confidence = max(0.0, min(1.0, confidence))

    return AdvisorySuggestion(
        action=action,
        confidence=confidence,
        rationale=str(data.get("rationale", "")),
    )


class LLMAdvisoryService(AdvisoryService):
    """Advisory service backed by a hosted language model."""

    def __init__(
        self,
        provider: str = "anthropic",
        model: str | None = None,
        max_tokens: int = 512,
        temperature: float = 0.3,
        api_key: str | None = None,
        prompts: AdvisoryPrompts | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            provider: "anthropic" or "openai".
            model: Model name (defaults per provider).
            max_tokens: Response token limit.
            temperature: Sampling temperature.
            api_key: API key. Falls back to the provider's environment variable.
            prompts: Prompt templates.

        Raises:
            ValueError: If provider is not supported.
        """
        if provider not in VALID_PROVIDERS:
            raise ValueError(f"Invalid provider: {provider}. Must be one of {VALID_PROVIDERS}")
        self._provider = provider
        self._model = model or DEFAULT_MODELS[provider]
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._api_key = api_key
        self._prompts = prompts or AdvisoryPrompts()

    @classmethod
    def from_config(cls, config: AdvisoryConfig) -> LLMAdvisoryService:
        return cls(
            provider=config.provider,
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model(self) -> str:
        return self._model

    def _resolve_api_key(self) -> str | None:
        return self._api_key or os.environ.get(API_KEY_VARIABLES[self._provider])

    def is_ready(self) -> bool:
        return self._resolve_api_key() is not None

    def suggest(self, context: DecisionContext, timeout: float) -> AdvisorySuggestion:
        """Ask the model for a suggestion.

        Raises:
            AdvisoryError: On missing SDK or key, API errors or unparseable output.
        """
        prompt = self._prompts.build_suggestion_prompt(context)
        if self._provider == "anthropic":
            response = self._call_anthropic(prompt, timeout)
        else:
            response = self._call_openai(prompt, timeout)
        suggestion = parse_suggestion(response)
        logger.debug(
            f"[ROUTER] {self._provider} suggested {suggestion.action} "
            f"(prompt v{self._prompts.version})"
        )
        return suggestion

    def _require_api_key(self) -> str:
        api_key = self._resolve_api_key()
        if not api_key:
            raise AdvisoryError(
                f"{API_KEY_VARIABLES[self._provider]} not set. "
                "Set it in environment or pass to constructor."
            )
        return api_key

    def _call_anthropic(self, prompt: str, timeout: float) -> str:
        try:
            import anthropic
        except ImportError as e:
            raise AdvisoryError(
                "anthropic package not installed. Run: pip install anthropic"
            ) from e

        client = anthropic.Anthropic(api_key=self._require_api_key(), timeout=timeout)
        try:
            message: Any = client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                system=self._prompts.system_prompt,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise AdvisoryError(f"Anthropic call failed: {e}") from e

        content = message.content[0]
        if hasattr(content, "text"):
            return str(content.text)
        return ""

    def _call_openai(self, prompt: str, timeout: float) -> str:
        try:
            import openai
        except ImportError as e:
            raise AdvisoryError("openai package not installed. Run: pip install openai") from e

        client = openai.OpenAI(api_key=self._require_api_key(), timeout=timeout)
        try:
            response: Any = client.chat.completions.create(
                model=self._model,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                messages=[
                    {"role": "system", "content": self._prompts.system_prompt},
                    {"role": "user", "content": prompt},
                ],
            )
        except Exception as e:
            raise AdvisoryError(f"OpenAI call failed: {e}") from e

        return response.choices[0].message.content or ""
