"""Caller-supplied generation settings, immutable until explicitly edited."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from seo_workflow.core.config import GENERATION_TYPES, Settings, get_settings
from seo_workflow.core.security import redact_credential


class WorkflowConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    credential: str = Field(default="", repr=False)
    generation_type: str = "FAQ"
    max_length: int = Field(default=1500, gt=0)
    creativity: float = Field(default=0.7, ge=0.0, le=2.0)

    @field_validator("generation_type")
    @classmethod
    def known_generation_type(cls, v: str) -> str:
        if v not in GENERATION_TYPES:
            raise ValueError(f"generation type must be one of {', '.join(GENERATION_TYPES)}")
        return v

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides: object) -> WorkflowConfig:
        settings = settings or get_settings()
        values: dict[str, object] = {
            "credential": settings.default_api_key,
            "generation_type": settings.default_generation_type,
            "max_length": settings.default_max_tokens,
            "creativity": settings.default_temperature,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def edit(self, **changes: object) -> WorkflowConfig:
        """Return a validated copy with ``changes`` applied; None values are ignored."""
        merged = {**self.model_dump(), **{k: v for k, v in changes.items() if v is not None}}
        return WorkflowConfig(**merged)

    def public_view(self) -> dict[str, object]:
        data = self.model_dump()
        data["credential"] = redact_credential(self.credential)
        data["has_credential"] = bool(self.credential)
        return data
