"""
Workflow session endpoints.

POST   /api/v1/sessions                         — open a session (optionally with a target)
GET    /api/v1/sessions/{id}                    — current state + derived summaries
DELETE /api/v1/sessions/{id}                    — drop the session
PUT    /api/v1/sessions/{id}/target             — switch target (resets the workflow)
POST   /api/v1/sessions/{id}/reset              — start over on the same target
PATCH  /api/v1/sessions/{id}/config             — edit credential / generation settings
POST   /api/v1/sessions/{id}/extract|analyze|generate
POST   /api/v1/sessions/{id}/advance|retreat
POST   /api/v1/sessions/{id}/selection/keywords      — toggle a keyword
POST   /api/v1/sessions/{id}/selection/improvements  — toggle an improvement
PUT    /api/v1/sessions/{id}/selection/topic         — choose the topic
"""

from fastapi import APIRouter, HTTPException, Request, Response, status
from pydantic import ValidationError

from seo_workflow.api.v1.deps import AppSettings, Sessions
from seo_workflow.core.config import get_settings
from seo_workflow.core.security import limiter
from seo_workflow.schemas.schemas import (
    ConfigUpdate,
    CreateSessionRequest,
    ImprovementToggleRequest,
    KeywordToggleRequest,
    MetricsView,
    NavigationResponse,
    SelectionView,
    SessionView,
    TargetRequest,
    ToggleResponse,
    TopicRequest,
)
from seo_workflow.workflow.config import WorkflowConfig
from seo_workflow.workflow.machine import StageWorkflow
from seo_workflow.workflow.state import Stage, StageOutcome, payload_to_wire
from seo_workflow.workflow.summary import extraction_summary, generation_summary

router = APIRouter(prefix="/sessions", tags=["sessions"])
_stage_rate = get_settings().stage_rate_limit


def build_view(
    session_id: str, workflow: StageWorkflow, outcome: StageOutcome | None = None
) -> SessionView:
    state = workflow.state
    metrics = state.extraction_metrics
    return SessionView(
        session_id=session_id,
        stage=state.stage,
        target=state.target,
        extracted_content=state.extracted_content,
        extraction_metrics=(
            MetricsView(
                characters=metrics.characters,
                words=metrics.words,
                sentences=metrics.sentences,
                ranking=metrics.ranking,
            )
            if metrics
            else None
        ),
        raw_analysis=payload_to_wire(state.raw_analysis) if state.raw_analysis else None,
        parsed_analysis=state.parsed_analysis,
        generated_content=state.generated_content,
        loading={stage.loading_key: state.loading.is_loading(stage) for stage in Stage},
        errors=dict(state.errors),
        selection=SelectionView(
            topic=state.selection.topic,
            keywords=state.selection.selected_keywords(),
            improvements=state.selection.selected_improvements(),
        ),
        topics_available=workflow.topics_available(),
        extraction_summary=extraction_summary(state.extracted_content),
        generation_summary=generation_summary(state.generated_content),
        config=workflow.config.public_view(),
        outcome=outcome,
    )


def _apply_config(base: WorkflowConfig, update: ConfigUpdate | None) -> WorkflowConfig:
    if update is None:
        return base
    try:
        return base.edit(**update.model_dump())
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[err["msg"] for err in e.errors()],
        ) from e


def _stage_response(
    session_id: str, workflow: StageWorkflow, stage: Stage, outcome: StageOutcome
) -> SessionView:
    if outcome is StageOutcome.BUSY:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{stage.value} is already running for this session",
        )
    if outcome is StageOutcome.REJECTED:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=workflow.state.error_for(stage),
        )
    return build_view(session_id, workflow, outcome)


# ── Lifecycle ───────────────────────────────────────────────
@router.post("", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: CreateSessionRequest, sessions: Sessions, settings: AppSettings
) -> SessionView:
    config = _apply_config(WorkflowConfig.from_settings(settings), body.config)
    session_id, workflow = sessions.create(target=body.target, config=config)
    return build_view(session_id, workflow)


@router.get("/{session_id}", response_model=SessionView)
async def get_session(session_id: str, sessions: Sessions) -> SessionView:
    return build_view(session_id, sessions.get(session_id))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, sessions: Sessions) -> Response:
    sessions.delete(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{session_id}/target", response_model=SessionView)
async def change_target(session_id: str, body: TargetRequest, sessions: Sessions) -> SessionView:
    workflow = sessions.get(session_id)
    workflow.set_target(body.target)
    return build_view(session_id, workflow)


@router.post("/{session_id}/reset", response_model=SessionView)
async def reset_session(session_id: str, sessions: Sessions) -> SessionView:
    workflow = sessions.get(session_id)
    workflow.reset()
    return build_view(session_id, workflow)


@router.patch("/{session_id}/config", response_model=SessionView)
async def update_config(session_id: str, body: ConfigUpdate, sessions: Sessions) -> SessionView:
    workflow = sessions.get(session_id)
    # validate before swapping so a bad edit leaves the old config in place
    config = _apply_config(workflow.config, body)
    workflow.update_config(**config.model_dump())
    return build_view(session_id, workflow)


# ── Stages ──────────────────────────────────────────────────
@router.post("/{session_id}/extract", response_model=SessionView)
@limiter.limit(_stage_rate)
async def extract(request: Request, session_id: str, sessions: Sessions) -> SessionView:
    workflow = sessions.get(session_id)
    outcome = await workflow.run_extraction()
    return _stage_response(session_id, workflow, Stage.EXTRACTION, outcome)


@router.post("/{session_id}/analyze", response_model=SessionView)
@limiter.limit(_stage_rate)
async def analyze(request: Request, session_id: str, sessions: Sessions) -> SessionView:
    workflow = sessions.get(session_id)
    outcome = await workflow.run_analysis()
    return _stage_response(session_id, workflow, Stage.ANALYSIS, outcome)


@router.post("/{session_id}/generate", response_model=SessionView)
@limiter.limit(_stage_rate)
async def generate(request: Request, session_id: str, sessions: Sessions) -> SessionView:
    workflow = sessions.get(session_id)
    outcome = await workflow.run_generation()
    return _stage_response(session_id, workflow, Stage.GENERATION, outcome)


# ── Navigation ──────────────────────────────────────────────
@router.post("/{session_id}/advance", response_model=NavigationResponse)
async def advance(session_id: str, sessions: Sessions) -> NavigationResponse:
    workflow = sessions.get(session_id)
    moved = workflow.advance()
    return NavigationResponse(moved=moved, session=build_view(session_id, workflow))


@router.post("/{session_id}/retreat", response_model=NavigationResponse)
async def retreat(session_id: str, sessions: Sessions) -> NavigationResponse:
    workflow = sessions.get(session_id)
    moved = workflow.retreat()
    return NavigationResponse(moved=moved, session=build_view(session_id, workflow))


# ── Selection ───────────────────────────────────────────────
@router.post("/{session_id}/selection/keywords", response_model=ToggleResponse)
async def toggle_keyword(
    session_id: str, body: KeywordToggleRequest, sessions: Sessions
) -> ToggleResponse:
    workflow = sessions.get(session_id)
    selected = workflow.toggle_keyword(body.keyword)
    return ToggleResponse(
        item=body.keyword, selected=selected, session=build_view(session_id, workflow)
    )


@router.post("/{session_id}/selection/improvements", response_model=ToggleResponse)
async def toggle_improvement(
    session_id: str, body: ImprovementToggleRequest, sessions: Sessions
) -> ToggleResponse:
    workflow = sessions.get(session_id)
    selected = workflow.toggle_improvement(body.improvement)
    return ToggleResponse(
        item=body.improvement, selected=selected, session=build_view(session_id, workflow)
    )


@router.put("/{session_id}/selection/topic", response_model=SessionView)
async def set_topic(session_id: str, body: TopicRequest, sessions: Sessions) -> SessionView:
    workflow = sessions.get(session_id)
    workflow.set_topic(body.topic)
    return build_view(session_id, workflow)
