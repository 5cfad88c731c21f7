"""
FastAPI application entry point.

Configures middleware, lifespan events, and mounts all routers.
Run locally: uvicorn seo_workflow.main:app --reload
Production:  uvicorn seo_workflow.main:app --host 0.0.0.0 --workers 1

Sessions are held in process memory, so run a single worker.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from seo_workflow.api.v1.routes import health, options, sessions
from seo_workflow.core.config import get_settings
from seo_workflow.core.logging import get_logger, setup_logging
from seo_workflow.core.security import limiter
from seo_workflow.services.session_store import SessionStore
from seo_workflow.services.stage_client import StageClient
from seo_workflow.workflow.errors import SessionNotFoundError, TopicNotAllowedError

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown events."""
    setup_logging()
    logger.info(
        "app_starting",
        environment=settings.app_env,
        stage_api=settings.stage_api_base_url,
    )

    async with StageClient() as client:
        app.state.session_store = SessionStore(client)
        yield

    logger.info("app_shutting_down")


app = FastAPI(
    title="SEO Content Workflow",
    description="Extract → analyse → generate workflow sessions backed by a remote stage service",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.app_env != "production" else None,
    redoc_url="/redoc" if settings.app_env != "production" else None,
)

# ── Middleware ──────────────────────────────────────────────
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Rate limiting ──────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ── Domain errors ──────────────────────────────────────────
@app.exception_handler(SessionNotFoundError)
async def session_not_found_handler(request: Request, exc: SessionNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(TopicNotAllowedError)
async def topic_not_allowed_handler(request: Request, exc: TopicNotAllowedError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc), "allowed_topics": exc.allowed},
    )


# ── Routes ─────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(options.router, prefix="/api/v1")
app.include_router(sessions.router, prefix="/api/v1")


@app.get("/")
async def root():
    return {
        "service": "SEO Content Workflow",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/healthz/",
    }
