"""
Centralised configuration via Pydantic Settings.

Reads from .env in dev and from plain environment variables in production.
Every field can be overridden with the upper-cased env var of the same name,
e.g. STAGE_API_BASE_URL or DEFAULT_MAX_TOKENS.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

GENERATION_TYPES: tuple[str, ...] = (
    "FAQ",
    "Blog Post",
    "Product Description",
    "Landing Page Content",
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Application ─────────────────────────────────────────
    app_env: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # ── External stage collaborator ─────────────────────────
    stage_api_base_url: str = "http://localhost:5000"
    stage_timeout_seconds: float = Field(
        default=120.0, description="Per-request timeout for scrape/analyze/generate calls"
    )
    stage_rate_limit: str = "30/minute"

    @field_validator("stage_api_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Endpoints are joined as f"{base}/scrape"; avoid a double slash."""
        return v.rstrip("/") if isinstance(v, str) else v

    # ── Generation defaults ─────────────────────────────────
    default_api_key: str = ""
    default_generation_type: str = "FAQ"
    default_max_tokens: int = 1500
    default_temperature: float = 0.7

    @field_validator("default_generation_type")
    @classmethod
    def known_generation_type(cls, v: str) -> str:
        if v not in GENERATION_TYPES:
            raise ValueError(f"generation type must be one of {', '.join(GENERATION_TYPES)}")
        return v

    # ── Presets offered to clients ──────────────────────────
    sample_targets: list[str] = [
        "https://www.actcorp.in/wifipedia",
        "https://www.actcorp.in/blog/what-is-smart-wifi-and-how-it-works",
        "https://www.actcorp.in/blog/is-it-worth-buying-smart-wifi-router",
        "https://www.actcorp.in/blog/what-is-the-total-distance-covered-by-smart-wifi",
        "https://www.actcorp.in/blog/exploring-uses-wifi-smart-homes",
        "https://www.actcorp.in/blog/fast-wi-fi-connection-for-cricket-live-streaming",
    ]

    @property
    def generation_types(self) -> list[str]:
        return list(GENERATION_TYPES)


@lru_cache
def get_settings() -> Settings:
    return Settings()
