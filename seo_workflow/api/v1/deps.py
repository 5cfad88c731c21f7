"""
Shared FastAPI dependencies for v1 API routes.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from seo_workflow.core.config import Settings, get_settings
from seo_workflow.services.session_store import SessionStore


def get_session_store(request: Request) -> SessionStore:
    """The store is created in the app lifespan and kept on app.state."""
    return request.app.state.session_store


# Re-export for convenience in route files
Sessions = Annotated[SessionStore, Depends(get_session_store)]
AppSettings = Annotated[Settings, Depends(get_settings)]
