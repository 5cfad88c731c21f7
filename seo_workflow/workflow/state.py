"""
Workflow state: the single source of truth for one client session.

Design principle: presentation code reads this record but never writes it.
Every mutation goes through a named operation on StageWorkflow (machine.py).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from seo_workflow.workflow.selection import Selection

if TYPE_CHECKING:
    from seo_workflow.workflow.parser import ParsedAnalysis


class Stage(str, enum.Enum):
    EXTRACTION = "extraction"
    ANALYSIS = "analysis"
    GENERATION = "generation"

    @property
    def loading_key(self) -> str:
        return _LOADING_KEYS[self]


_LOADING_KEYS = {
    Stage.EXTRACTION: "extracting",
    Stage.ANALYSIS: "analyzing",
    Stage.GENERATION: "generating",
}

STAGE_ORDER: tuple[Stage, ...] = (Stage.EXTRACTION, Stage.ANALYSIS, Stage.GENERATION)


class StageOutcome(str, enum.Enum):
    COMPLETED = "completed"
    FAILED = "failed"  # collaborator call settled without a usable result
    REJECTED = "rejected"  # precondition violated, no call issued
    BUSY = "busy"  # same stage already pending, no call issued
    STALE = "stale"  # response belonged to a superseded target


# ── Analysis payload: tagged union at the invoker boundary ───
@dataclass(frozen=True, slots=True)
class RawText:
    text: str


@dataclass(frozen=True, slots=True)
class Structured:
    value: Any


AnalysisPayload = RawText | Structured


def payload_to_wire(payload: AnalysisPayload) -> Any:
    """The value the collaborator originally sent, for echoing back in requests."""
    if isinstance(payload, RawText):
        return payload.text
    return payload.value


def payload_is_empty(payload: AnalysisPayload | None) -> bool:
    if payload is None:
        return True
    if isinstance(payload, RawText):
        return not payload.text
    return payload.value is None or payload.value == {} or payload.value == []


@dataclass(frozen=True, slots=True)
class ExtractionMetrics:
    characters: int
    words: int
    sentences: int
    ranking: int | float | str = "Not available"


@dataclass(slots=True)
class LoadingFlags:
    extracting: bool = False
    analyzing: bool = False
    generating: bool = False

    def is_loading(self, stage: Stage) -> bool:
        return getattr(self, stage.loading_key)

    def set(self, stage: Stage, value: bool) -> None:
        setattr(self, stage.loading_key, value)


def _empty_errors() -> dict[str, str | None]:
    return {stage.value: None for stage in STAGE_ORDER}


@dataclass(slots=True)
class WorkflowState:
    """Everything a session knows about its current target."""

    target: str = ""
    stage: Stage = Stage.EXTRACTION
    extracted_content: str | None = None
    extraction_metrics: ExtractionMetrics | None = None
    raw_analysis: AnalysisPayload | None = None
    parsed_analysis: ParsedAnalysis | None = None
    generated_content: str | None = None
    loading: LoadingFlags = field(default_factory=LoadingFlags)
    errors: dict[str, str | None] = field(default_factory=_empty_errors)
    selection: Selection = field(default_factory=Selection)
    generation_token: int = 0

    @classmethod
    def initial(cls, target: str = "", *, generation_token: int = 0) -> WorkflowState:
        return cls(target=target, generation_token=generation_token)

    def error_for(self, stage: Stage) -> str | None:
        return self.errors.get(stage.value)

    def has_artifact(self, stage: Stage) -> bool:
        if stage is Stage.EXTRACTION:
            return bool(self.extracted_content)
        if stage is Stage.ANALYSIS:
            return not payload_is_empty(self.raw_analysis)
        return bool(self.generated_content)
