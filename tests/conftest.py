"""
Shared pytest fixtures for unit tests.

FakeInvoker stands in for the remote stage service — no network needed.
Set ``gate`` to an asyncio.Event to hold calls in flight until it is set.
"""

from __future__ import annotations

import asyncio
import json

import pytest
import pytest_asyncio

from seo_workflow.services.stage_client import (
    ExtractionResult,
    GenerationRequest,
    StageFailure,
    StageSuccess,
)
from seo_workflow.workflow.config import WorkflowConfig
from seo_workflow.workflow.machine import StageWorkflow
from seo_workflow.workflow.parser import coerce_analysis
from seo_workflow.workflow.state import ExtractionMetrics

SAMPLE_TARGET = "https://example.com/page"
SAMPLE_CONTENT = "Hello world. Another sentence."

FULL_ANALYSIS = {
    "SEOAnalysis": {
        "SEOScore": 64,
        "CurrentKeywords": ["smart wifi", "router", "smart wifi"],
        "NewKeywordTargets": {
            "SuggestedKeywords": ["mesh network", "wifi coverage"],
            "ContentTopicsToAdd": ["Wifi range tips", "Choosing a router"],
        },
        "Improvements": ["Add FAQ schema", "Shorten the intro"],
    }
}


class FakeInvoker:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []
        self.gate: asyncio.Event | None = None
        self.extract_result: StageSuccess | StageFailure = StageSuccess(
            ExtractionResult(
                content=SAMPLE_CONTENT,
                metrics=ExtractionMetrics(characters=29, words=5, sentences=2, ranking=3),
            )
        )
        self.analyze_result: StageSuccess | StageFailure = StageSuccess(
            coerce_analysis(json.dumps(FULL_ANALYSIS))
        )
        self.generate_result: StageSuccess | StageFailure = StageSuccess(
            "# Wifi Range Tips\n\nBody text."
        )

    async def _hold(self) -> None:
        if self.gate is not None:
            await self.gate.wait()

    async def extract(self, target: str):
        self.calls.append(("extract", target))
        await self._hold()
        return self.extract_result

    async def analyze(self, content: str, credential: str):
        self.calls.append(("analyze", (content, credential)))
        await self._hold()
        return self.analyze_result

    async def generate(self, request: GenerationRequest):
        self.calls.append(("generate", request))
        await self._hold()
        return self.generate_result

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def fake_invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture
def config() -> WorkflowConfig:
    return WorkflowConfig(
        credential="sk-test-credential-1234",
        generation_type="FAQ",
        max_length=1500,
        creativity=0.7,
    )


@pytest.fixture
def workflow(fake_invoker: FakeInvoker, config: WorkflowConfig) -> StageWorkflow:
    return StageWorkflow(fake_invoker, config, target=SAMPLE_TARGET)


@pytest_asyncio.fixture
async def analysed_workflow(workflow: StageWorkflow) -> StageWorkflow:
    """A workflow that has completed extraction and analysis."""
    await workflow.run_extraction()
    await workflow.run_analysis()
    return workflow


@pytest.fixture
def full_analysis() -> dict:
    return json.loads(json.dumps(FULL_ANALYSIS))
