"""
Stage workflow state machine.

Flow:
  extraction → analysis → generation

Each stage has its own loading flag and error slot. A stage operation:
  1. refuses to start while the same stage is already pending (BUSY)
  2. checks its preconditions and records a message on violation (REJECTED)
  3. clears its error, raises its loading flag and calls the collaborator
  4. on return, drops the response if the target changed meanwhile (STALE)
  5. otherwise clears the flag, then stores the artifact or the error

Stage operations never raise; every attempt settles into the state and a
StageOutcome. Cancellation is the one exception: the loading flag is cleared
and CancelledError propagates. Target changes bump ``generation_token`` so
responses issued for an earlier target can be recognised and discarded.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable

from seo_workflow.core.logging import get_logger
from seo_workflow.services.stage_client import (
    GenerationRequest,
    StageFailure,
    StageInvoker,
    StageSuccess,
)
from seo_workflow.workflow.config import WorkflowConfig
from seo_workflow.workflow.parser import parse_analysis
from seo_workflow.workflow.selection import has_topics_available
from seo_workflow.workflow.state import (
    STAGE_ORDER,
    Stage,
    StageOutcome,
    WorkflowState,
    payload_to_wire,
)

logger = get_logger(__name__)

MISSING_TARGET = "Please enter a URL"
MISSING_CREDENTIAL = "Please enter your API key"
MISSING_EXTRACTION = "Please extract content first"
MISSING_GENERATION_INPUT = "Please provide API key and content topic"
MISSING_ANALYSIS = "Please complete the analysis first"
TOPIC_NOT_SUGGESTED = "Topic must be one of the suggested content topics"


class StageWorkflow:
    """Owns one WorkflowState and is the only thing allowed to change it."""

    def __init__(
        self,
        invoker: StageInvoker,
        config: WorkflowConfig | None = None,
        *,
        target: str = "",
        session_id: str | None = None,
    ) -> None:
        self._invoker = invoker
        self._config = config or WorkflowConfig.from_settings()
        self._state = WorkflowState.initial(target)
        self._log = logger.bind(session_id=session_id) if session_id else logger

    # ── Read access ─────────────────────────────────────────
    @property
    def state(self) -> WorkflowState:
        """Current state. Callers must treat it as read-only."""
        return self._state

    @property
    def config(self) -> WorkflowConfig:
        return self._config

    def content_topics(self) -> list[str]:
        parsed = self._state.parsed_analysis
        return list(parsed.content_topics or []) if parsed else []

    def topics_available(self) -> bool:
        return has_topics_available(self.content_topics())

    # ── Config & target ─────────────────────────────────────
    def update_config(self, **changes: object) -> WorkflowConfig:
        self._config = self._config.edit(**changes)
        return self._config

    def reset_for_new_target(self, target: str) -> None:
        """Start over with an empty state for ``target``. Config is kept."""
        token = self._state.generation_token + 1
        self._state = WorkflowState.initial(target, generation_token=token)
        self._log.info("workflow_reset", target=target, generation_token=token)

    def set_target(self, target: str) -> bool:
        """Switch target; returns False (and keeps everything) if it is unchanged."""
        if target == self._state.target:
            return False
        self.reset_for_new_target(target)
        return True

    def reset(self) -> None:
        self.reset_for_new_target(self._state.target)

    # ── Navigation ──────────────────────────────────────────
    def advance(self) -> bool:
        index = STAGE_ORDER.index(self._state.stage)
        if index == len(STAGE_ORDER) - 1:
            return False
        if not self._state.has_artifact(self._state.stage):
            return False
        self._state.stage = STAGE_ORDER[index + 1]
        return True

    def retreat(self) -> bool:
        index = STAGE_ORDER.index(self._state.stage)
        if index == 0:
            return False
        self._state.stage = STAGE_ORDER[index - 1]
        return True

    # ── Selection ───────────────────────────────────────────
    def toggle_keyword(self, keyword: str) -> bool:
        return self._state.selection.toggle_keyword(keyword)

    def toggle_improvement(self, improvement: str) -> bool:
        return self._state.selection.toggle_improvement(improvement)

    def set_topic(self, topic: str) -> None:
        """Raises TopicNotAllowedError when topics are suggested and ``topic`` is not one."""
        self._state.selection.set_topic(topic, allowed=self.content_topics())

    # ── Stages ──────────────────────────────────────────────
    async def run_extraction(self, target: str | None = None) -> StageOutcome:
        if target is not None:
            self.set_target(target)

        stage = Stage.EXTRACTION
        if self._state.loading.is_loading(stage):
            return StageOutcome.BUSY
        if not self._state.target:
            return self._reject(stage, MISSING_TARGET)

        target = self._state.target
        token = self._begin(stage)
        result = await self._call(stage, token, self._invoker.extract(target))
        if not self._settle(stage, token):
            return StageOutcome.STALE

        if isinstance(result, StageFailure):
            return self._fail(stage, result)

        self._state.extracted_content = result.payload.content
        self._state.extraction_metrics = result.payload.metrics
        self._log.info(
            "extraction_completed",
            target=target,
            characters=result.payload.metrics.characters,
            words=result.payload.metrics.words,
        )
        return StageOutcome.COMPLETED

    async def run_analysis(self) -> StageOutcome:
        stage = Stage.ANALYSIS
        if self._state.loading.is_loading(stage):
            return StageOutcome.BUSY
        credential = self._config.credential
        if not credential:
            return self._reject(stage, MISSING_CREDENTIAL)
        content = self._state.extracted_content
        if not content:
            return self._reject(stage, MISSING_EXTRACTION)

        token = self._begin(stage)
        result = await self._call(stage, token, self._invoker.analyze(content, credential))
        if not self._settle(stage, token):
            return StageOutcome.STALE

        if isinstance(result, StageFailure):
            return self._fail(stage, result)

        parsed = parse_analysis(result.payload)
        self._state.raw_analysis = result.payload
        self._state.parsed_analysis = parsed
        # selections only make sense against the analysis they were drawn from
        self._state.selection.clear()
        self._log.info(
            "analysis_completed",
            structured=parsed is not None,
            score=parsed.score if parsed else None,
        )
        return StageOutcome.COMPLETED

    async def run_generation(self) -> StageOutcome:
        stage = Stage.GENERATION
        if self._state.loading.is_loading(stage):
            return StageOutcome.BUSY
        if not self._config.credential or not self._state.selection.topic:
            return self._reject(stage, MISSING_GENERATION_INPUT)
        if not self._state.has_artifact(Stage.ANALYSIS):
            return self._reject(stage, MISSING_ANALYSIS)
        topics = self.content_topics()
        if topics and self._state.selection.topic not in topics:
            return self._reject(stage, TOPIC_NOT_SUGGESTED)

        request = self.build_generation_request()
        token = self._begin(stage)
        result = await self._call(stage, token, self._invoker.generate(request))
        if not self._settle(stage, token):
            return StageOutcome.STALE

        if isinstance(result, StageFailure):
            return self._fail(stage, result)

        self._state.generated_content = result.payload
        self._log.info(
            "generation_completed",
            topic=request.topic,
            generation_type=request.generation_type,
            characters=len(result.payload),
        )
        return StageOutcome.COMPLETED

    def build_generation_request(self) -> GenerationRequest:
        selection = self._state.selection
        raw = self._state.raw_analysis
        return GenerationRequest(
            analysis=payload_to_wire(raw) if raw is not None else None,
            topic=selection.topic,
            generation_type=self._config.generation_type,
            credential=self._config.credential,
            max_length=self._config.max_length,
            creativity=self._config.creativity,
            selected_improvements=selection.selected_improvements(),
            selected_keywords=selection.selected_keywords(),
        )

    # ── Internals ───────────────────────────────────────────
    def _begin(self, stage: Stage) -> int:
        self._state.errors[stage.value] = None
        self._state.loading.set(stage, True)
        self._log.info("stage_started", stage=stage.value, target=self._state.target)
        return self._state.generation_token

    def _settle(self, stage: Stage, token: int) -> bool:
        """Clear the loading flag; False means the response is stale and must be dropped."""
        if token != self._state.generation_token:
            self._log.warning(
                "stale_response_discarded",
                stage=stage.value,
                issued_token=token,
                current_token=self._state.generation_token,
            )
            return False
        self._state.loading.set(stage, False)
        return True

    async def _call(
        self, stage: Stage, token: int, pending: Awaitable[StageSuccess | StageFailure]
    ) -> StageSuccess | StageFailure:
        try:
            return await pending
        except asyncio.CancelledError:
            if token == self._state.generation_token:
                self._state.loading.set(stage, False)
            self._log.warning("stage_cancelled", stage=stage.value)
            raise
        except Exception as e:
            self._log.exception("stage_invoker_error", stage=stage.value)
            return StageFailure(str(e) or f"{stage.value} failed")

    def _fail(self, stage: Stage, failure: StageFailure) -> StageOutcome:
        self._state.errors[stage.value] = failure.reason
        self._log.warning("stage_failed", stage=stage.value, reason=failure.reason)
        return StageOutcome.FAILED

    def _reject(self, stage: Stage, message: str) -> StageOutcome:
        self._state.errors[stage.value] = message
        self._log.info("stage_rejected", stage=stage.value, reason=message)
        return StageOutcome.REJECTED
