"""
Text generation client for weekly summaries.

Groq chat completions in JSON mode. The first failure is retried exactly
once against the fallback model; anything after that surfaces as
GenerationError.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Protocol

import groq

from inkwell.core.config import settings
from inkwell.core.errors import GenerationError
from inkwell.models.weekly_summary import WeekBoundaries, WeekCounts

logger = logging.getLogger("inkwell")

SYSTEM_PROMPT = (
    "You are a gentle journaling companion. You read a week of someone's journal "
    "and answer only with JSON that matches the provided schema."
)

MESSAGE_SEPARATOR = "\n---\n"


class TextGenerator(Protocol):
    def complete_structured(self, prompt: str, schema: Dict[str, Any]) -> str:
        """Return JSON text conforming to schema."""
        ...


def build_weekly_prompt(texts: List[str], counts: WeekCounts, week: WeekBoundaries) -> str:
    entries = MESSAGE_SEPARATOR.join(t.strip() for t in texts if t and t.strip())
    return (
        f"Week: {week.start_date.isoformat()} to {week.end_date.isoformat()}\n"
        f"Sessions: {counts.session_count}\n"
        f"Messages: {counts.message_count}\n\n"
        f"Journal entries:\n{entries}"
    )


class GroqTextGenerator:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        fallback_model: Optional[str] = None,
        timeout: Optional[float] = None,
        temperature: Optional[float] = None,
        client=None,
    ):
        key = api_key or settings.GROQ_API_KEY
        if client is None and key:
            client = groq.Groq(api_key=key, timeout=timeout or settings.GROQ_TIMEOUT_SECONDS)
        self.client = client
        self.model = model or settings.GROQ_MODEL
        self.fallback_model = fallback_model or settings.GROQ_FALLBACK_MODEL
        self.temperature = settings.GROQ_TEMPERATURE if temperature is None else temperature

    def _complete(self, model: str, prompt: str, schema: Dict[str, Any]) -> str:
        if self.client is None:
            raise GenerationError("GROQ_API_KEY is not configured")
        completion = self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": f"{SYSTEM_PROMPT}\nJSON schema:\n{json.dumps(schema)}"},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            temperature=self.temperature,
        )
        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise GenerationError(f"Empty completion from {model}")
        return content

    def complete_structured(self, prompt: str, schema: Dict[str, Any]) -> str:
        try:
            return self._complete(self.model, prompt, schema)
        except (groq.GroqError, GenerationError) as first:
            logger.warning(f"[generator] {self.model} failed ({first.__class__.__name__}), trying {self.fallback_model}")
            try:
                return self._complete(self.fallback_model, prompt, schema)
            except (groq.GroqError, GenerationError) as exc:
                raise GenerationError(f"Text generation failed: {exc}") from exc


_generator_instance: Optional[TextGenerator] = None


def get_text_generator() -> TextGenerator:
    global _generator_instance
    if _generator_instance is None:
        _generator_instance = GroqTextGenerator()
    return _generator_instance


def reset_text_generator() -> None:
    """FOR TESTING ONLY."""
    global _generator_instance
    _generator_instance = None
