"""Static choices a client needs to render the workflow forms."""

from __future__ import annotations

from fastapi import APIRouter

from seo_workflow.api.v1.deps import AppSettings
from seo_workflow.schemas.schemas import OptionsResponse
from seo_workflow.workflow.config import WorkflowConfig

router = APIRouter(prefix="/options", tags=["options"])


@router.get("", response_model=OptionsResponse)
async def get_options(settings: AppSettings) -> OptionsResponse:
    defaults = WorkflowConfig.from_settings(settings).public_view()
    return OptionsResponse(
        generation_types=settings.generation_types,
        sample_targets=settings.sample_targets,
        defaults=defaults,
    )
