"""
Pydantic v2 schemas for API request/response validation.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from seo_workflow.workflow.parser import ParsedAnalysis
from seo_workflow.workflow.state import Stage, StageOutcome
from seo_workflow.workflow.summary import ExtractionSummary, GenerationSummary


# ── Session inputs ──────────────────────────────────────────
class ConfigUpdate(BaseModel):
    credential: str | None = None
    generation_type: str | None = None
    max_length: int | None = None
    creativity: float | None = None


class CreateSessionRequest(BaseModel):
    target: str = ""
    config: ConfigUpdate | None = None


class TargetRequest(BaseModel):
    target: str = Field(..., min_length=1)


class KeywordToggleRequest(BaseModel):
    keyword: str = Field(..., min_length=1)


class ImprovementToggleRequest(BaseModel):
    improvement: str = Field(..., min_length=1)


class TopicRequest(BaseModel):
    topic: str


# ── Session view ────────────────────────────────────────────
class MetricsView(BaseModel):
    characters: int
    words: int
    sentences: int
    ranking: int | float | str


class SelectionView(BaseModel):
    topic: str = ""
    keywords: list[str] = []
    improvements: list[str] = []


class SessionView(BaseModel):
    session_id: str
    stage: Stage
    target: str
    extracted_content: str | None = None
    extraction_metrics: MetricsView | None = None
    raw_analysis: Any = None
    parsed_analysis: ParsedAnalysis | None = None
    generated_content: str | None = None
    loading: dict[str, bool]
    errors: dict[str, str | None]
    selection: SelectionView
    topics_available: bool = False
    extraction_summary: ExtractionSummary | None = None
    generation_summary: GenerationSummary | None = None
    config: dict[str, Any]
    outcome: StageOutcome | None = None


class ToggleResponse(BaseModel):
    item: str
    selected: bool
    session: SessionView


class NavigationResponse(BaseModel):
    moved: bool
    session: SessionView


# ── Options ─────────────────────────────────────────────────
class OptionsResponse(BaseModel):
    generation_types: list[str]
    sample_targets: list[str]
    defaults: dict[str, Any]


# ── Health check ────────────────────────────────────────────
class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str = "0.1.0"
    environment: str
    active_sessions: int = 0
