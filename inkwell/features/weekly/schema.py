"""
Structured output contract for weekly summaries.

The schema is declared once as data (field name -> type and constraints),
checked at startup, and rendered to JSON Schema for the text generator.
Responses are parsed with a pydantic model built from the same limits.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from inkwell.core.errors import GenerationError
from inkwell.models.weekly_summary import EmotionProfile

TREND_VALUES: Tuple[str, ...] = ("improving", "stable", "challenging")
MAX_SECONDARY_EMOTIONS = 3
MIN_INSIGHTS = 1
MAX_INSIGHTS = 3


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: Literal["string", "array"]
    description: str
    required: bool = True
    enum: Optional[Tuple[str, ...]] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None

    def to_json_schema(self) -> Dict[str, Any]:
        spec: Dict[str, Any] = {"type": self.type, "description": self.description}
        if self.type == "array":
            spec["items"] = {"type": "string"}
            if self.min_items is not None:
                spec["minItems"] = self.min_items
            if self.max_items is not None:
                spec["maxItems"] = self.max_items
        if self.enum:
            spec["enum"] = list(self.enum)
        return spec


WEEKLY_SUMMARY_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec("summary", "string", "A short, warm letter about the week"),
    FieldSpec("dominant_emotion", "string", "The main emotion of the week"),
    FieldSpec(
        "secondary_emotions",
        "array",
        "Other emotions that showed up",
        max_items=MAX_SECONDARY_EMOTIONS,
    ),
    FieldSpec("trend", "string", "Emotional direction across the week", enum=TREND_VALUES),
    FieldSpec(
        "insights",
        "array",
        "Observations about patterns in the writing",
        min_items=MIN_INSIGHTS,
        max_items=MAX_INSIGHTS,
    ),
    FieldSpec("encouragement", "string", "One encouraging sentence for next week"),
)


def validate_schema(fields: Tuple[FieldSpec, ...] = WEEKLY_SUMMARY_FIELDS) -> None:
    """Fail fast on a malformed declaration. Called at startup."""
    names = [f.name for f in fields]
    if len(names) != len(set(names)):
        raise RuntimeError("Duplicate field in weekly summary schema")
    for f in fields:
        if f.type not in ("string", "array"):
            raise RuntimeError(f"Unsupported schema type for {f.name}: {f.type}")
        if f.type != "array" and (f.min_items is not None or f.max_items is not None):
            raise RuntimeError(f"Item limits only apply to arrays: {f.name}")
        if f.min_items is not None and f.max_items is not None and f.min_items > f.max_items:
            raise RuntimeError(f"min_items exceeds max_items for {f.name}")
        if f.enum is not None and not f.enum:
            raise RuntimeError(f"Empty enum for {f.name}")


def to_json_schema(fields: Tuple[FieldSpec, ...] = WEEKLY_SUMMARY_FIELDS) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {f.name: f.to_json_schema() for f in fields},
        "required": [f.name for f in fields if f.required],
    }


class WeeklySummaryDraft(BaseModel):
    """Parsed generator output."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    summary: str = Field(..., min_length=1)
    dominant_emotion: str = Field(..., min_length=1)
    secondary_emotions: List[str] = Field(default_factory=list)
    trend: Literal["improving", "stable", "challenging"]
    insights: List[str] = Field(..., min_length=MIN_INSIGHTS)
    encouragement: str = Field(..., min_length=1)

    @field_validator("trend", mode="before")
    @classmethod
    def _normalize_trend(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("secondary_emotions")
    @classmethod
    def _cap_secondary(cls, value: List[str]) -> List[str]:
        return [v for v in value if v.strip()][:MAX_SECONDARY_EMOTIONS]

    @field_validator("insights")
    @classmethod
    def _cap_insights(cls, value: List[str]) -> List[str]:
        return [v for v in value if v.strip()][:MAX_INSIGHTS]

    def emotions(self) -> EmotionProfile:
        return EmotionProfile(
            dominant_emotion=self.dominant_emotion,
            secondary_emotions=list(self.secondary_emotions),
            trend=self.trend,
            insights=list(self.insights),
            encouragement=self.encouragement,
        )


def parse_summary_response(raw: str) -> WeeklySummaryDraft:
    """Parse generator JSON text. Any mismatch is a GenerationError."""
    try:
        payload = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as exc:
        raise GenerationError("Generator returned malformed JSON") from exc
    if not isinstance(payload, dict):
        raise GenerationError("Generator returned a non-object JSON value")
    try:
        draft = WeeklySummaryDraft.model_validate(payload)
    except PydanticValidationError as exc:
        raise GenerationError(f"Generator output does not match schema: {exc.error_count()} error(s)") from exc
    if not draft.insights:
        raise GenerationError("Generator output has no usable insights")
    return draft
