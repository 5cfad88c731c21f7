"""
Analysis result parser.

The analysis collaborator is a free-text generative source: it usually returns
a JSON document (sometimes wrapped in a Markdown fence, sometimes already
decoded), but it may legitimately answer with prose. Parsing is therefore
all-or-nothing at the top level and field-by-field below it, and it never
raises: anything unusable becomes ``None`` so callers can fall back to the raw
text.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from seo_workflow.core.logging import get_logger
from seo_workflow.workflow.state import AnalysisPayload, RawText, Structured

logger = get_logger(__name__)

ANALYSIS_KEY_PATH: tuple[str, ...] = ("SEOAnalysis",)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


class ParsedAnalysis(BaseModel):
    """Typed view of the analysis section. Every field is independently optional."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    score: int | None = Field(default=None, description="Overall score, expected 0-100.")
    current_keywords: list[str] | None = None
    suggested_keywords: list[str] | None = None
    content_topics: list[str] | None = None
    improvements: list[str] | None = None


def coerce_analysis(value: Any) -> AnalysisPayload:
    """Tag a wire value: strings stay text, anything else is treated as structured."""
    if isinstance(value, str):
        return RawText(value)
    return Structured(value)


def parse_analysis(payload: AnalysisPayload | None) -> ParsedAnalysis | None:
    """Return the typed analysis, or None if the payload is not usable structured data."""
    match payload:
        case RawText(text=text):
            candidate = _decode(text)
        case Structured(value=value):
            candidate = value
        case _:
            return None

    section = _walk(candidate, ANALYSIS_KEY_PATH)
    if section is None:
        return None

    new_targets = section.get("NewKeywordTargets")
    if not isinstance(new_targets, Mapping):
        new_targets = {}

    return ParsedAnalysis(
        score=_as_score(section.get("SEOScore")),
        current_keywords=_as_strings(section.get("CurrentKeywords")),
        suggested_keywords=_as_strings(new_targets.get("SuggestedKeywords")),
        content_topics=_as_strings(new_targets.get("ContentTopicsToAdd")),
        improvements=_as_strings(section.get("Improvements")),
    )


def _decode(text: str) -> Any:
    cleaned = _FENCE_OPEN.sub("", text.strip())
    cleaned = _FENCE_CLOSE.sub("", cleaned).strip()
    try:
        return json.loads(cleaned)
    except (ValueError, RecursionError):
        logger.debug("analysis_not_json", length=len(text))
        return None


def _walk(candidate: Any, path: tuple[str, ...]) -> Mapping[str, Any] | None:
    node = candidate
    for segment in path:
        if not isinstance(node, Mapping) or segment not in node:
            return None
        node = node[segment]
    return node if isinstance(node, Mapping) else None


def _as_strings(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item if isinstance(item, str) else str(item) for item in value]


def _as_score(value: Any) -> int | None:
    # bool is an int subclass; true/false is never a score
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
    if isinstance(value, (float, str)):
        # json.loads accepts NaN/Infinity, which int() refuses
        try:
            return int(float(value))
        except (ValueError, OverflowError):
            return None
    return None
