"""
Stage client: one request per workflow stage to the external collaborator.

Handles:
  - POST /scrape            → extracted page content + server-side counts
  - POST /analyze-seo       → analysis payload (JSON text or an object)
  - POST /generate-content  → generated content

Every call settles into StageSuccess(payload) or StageFailure(reason).
Transport errors, non-2xx statuses, an ``error`` field and malformed bodies
are all failures; nothing is raised to the caller and nothing is retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from seo_workflow.core.config import get_settings
from seo_workflow.core.logging import get_logger
from seo_workflow.core.security import credential_fingerprint
from seo_workflow.workflow.parser import coerce_analysis
from seo_workflow.workflow.state import AnalysisPayload, ExtractionMetrics

logger = get_logger(__name__)

T = TypeVar("T")

SCRAPE_PATH = "/scrape"
ANALYZE_PATH = "/analyze-seo"
GENERATE_PATH = "/generate-content"

SCRAPE_FAILED = "Failed to scrape website"
ANALYZE_FAILED = "Failed to analyze SEO"
GENERATE_FAILED = "Failed to generate content"


@dataclass(frozen=True)
class StageSuccess(Generic[T]):
    payload: T


@dataclass(frozen=True, slots=True)
class StageFailure:
    reason: str


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    content: str
    metrics: ExtractionMetrics


# ── Wire models ─────────────────────────────────────────────
class ExtractionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content: str
    character_count: int = Field(default=0, alias="characterCount")
    word_count: int = Field(default=0, alias="wordCount")
    sentence_count: int = Field(default=0, alias="sentenceCount")
    ranking: int | float | str | None = None


class GenerationRequest(BaseModel):
    """Body of the generation call, serialised with the collaborator's field names."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    analysis: Any = Field(alias="seoData")
    topic: str = Field(alias="contentTopic")
    generation_type: str = Field(alias="generationType")
    credential: str = Field(alias="apiKey", repr=False)
    max_length: int = Field(alias="maxTokens")
    creativity: float = Field(alias="temperature")
    selected_improvements: list[str] = Field(default_factory=list, alias="selectedImprovements")
    selected_keywords: list[str] = Field(default_factory=list, alias="selectedKeywords")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class StageInvoker(Protocol):
    async def extract(self, target: str) -> StageSuccess[ExtractionResult] | StageFailure: ...

    async def analyze(
        self, content: str, credential: str
    ) -> StageSuccess[AnalysisPayload] | StageFailure: ...

    async def generate(self, request: GenerationRequest) -> StageSuccess[str] | StageFailure: ...


class StageClient:
    """Async HTTP adapter for the scrape/analyze/generate collaborator."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.stage_api_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.stage_timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> StageClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def extract(self, target: str) -> StageSuccess[ExtractionResult] | StageFailure:
        result = await self._post(SCRAPE_PATH, {"url": target}, SCRAPE_FAILED)
        if isinstance(result, StageFailure):
            return result

        try:
            body = ExtractionResponse.model_validate(result.payload)
        except ValidationError as e:
            logger.warning("extraction_response_malformed", errors=e.error_count())
            return StageFailure(f"{SCRAPE_FAILED}: malformed response")

        metrics = ExtractionMetrics(
            characters=body.character_count,
            words=body.word_count,
            sentences=body.sentence_count,
            ranking=body.ranking if body.ranking not in (None, "") else "Not available",
        )
        return StageSuccess(ExtractionResult(content=body.content, metrics=metrics))

    async def analyze(
        self, content: str, credential: str
    ) -> StageSuccess[AnalysisPayload] | StageFailure:
        logger.debug("analysis_requested", key=credential_fingerprint(credential), chars=len(content))
        result = await self._post(
            ANALYZE_PATH, {"content": content, "apiKey": credential}, ANALYZE_FAILED
        )
        if isinstance(result, StageFailure):
            return result
        if "analysis" not in result.payload or result.payload["analysis"] is None:
            return StageFailure(f"{ANALYZE_FAILED}: response had no analysis")
        return StageSuccess(coerce_analysis(result.payload["analysis"]))

    async def generate(self, request: GenerationRequest) -> StageSuccess[str] | StageFailure:
        result = await self._post(GENERATE_PATH, request.to_wire(), GENERATE_FAILED)
        if isinstance(result, StageFailure):
            return result
        content = result.payload.get("content")
        if not isinstance(content, str):
            return StageFailure(f"{GENERATE_FAILED}: response had no content")
        return StageSuccess(content)

    async def _post(
        self, path: str, body: dict[str, Any], default_error: str
    ) -> StageSuccess[dict[str, Any]] | StageFailure:
        try:
            resp = await self._client.post(path, json=body)
        except httpx.HTTPError as e:
            logger.warning("stage_request_failed", path=path, error=str(e))
            return StageFailure(str(e) or default_error)

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.is_success:
            message = data.get("error") if isinstance(data, dict) else None
            logger.warning("stage_request_rejected", path=path, status=resp.status_code)
            return StageFailure(str(message) if message else default_error)

        if not isinstance(data, dict):
            logger.warning("stage_response_not_object", path=path, status=resp.status_code)
            return StageFailure(f"{default_error}: response was not a JSON object")

        if data.get("error"):
            logger.warning("stage_reported_error", path=path)
            return StageFailure(str(data["error"]))

        logger.info("stage_request_succeeded", path=path, status=resp.status_code)
        return StageSuccess(data)
