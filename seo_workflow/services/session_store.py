"""
In-memory session registry.

One StageWorkflow per client session, all sharing the application's stage
client. Sessions live only as long as the process does.
"""

from __future__ import annotations

import uuid

from seo_workflow.core.logging import get_logger
from seo_workflow.services.stage_client import StageInvoker
from seo_workflow.workflow.config import WorkflowConfig
from seo_workflow.workflow.errors import SessionNotFoundError
from seo_workflow.workflow.machine import StageWorkflow

logger = get_logger(__name__)


class SessionStore:
    def __init__(self, invoker: StageInvoker) -> None:
        self._invoker = invoker
        self._sessions: dict[str, StageWorkflow] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(
        self, target: str = "", config: WorkflowConfig | None = None
    ) -> tuple[str, StageWorkflow]:
        session_id = str(uuid.uuid4())
        workflow = StageWorkflow(self._invoker, config, target=target, session_id=session_id)
        self._sessions[session_id] = workflow
        logger.info("session_created", session_id=session_id, target=target)
        return session_id, workflow

    def get(self, session_id: str) -> StageWorkflow:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def delete(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(session_id)
        logger.info("session_deleted", session_id=session_id)
