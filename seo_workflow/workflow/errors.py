"""Domain exceptions. The API layer maps these onto HTTP status codes."""

from __future__ import annotations


class WorkflowError(Exception):
    """Base class for workflow errors raised outside the stage operations."""


class TopicNotAllowedError(WorkflowError):
    def __init__(self, topic: str, allowed: list[str]) -> None:
        self.topic = topic
        self.allowed = allowed
        super().__init__(f"Topic {topic!r} is not one of the suggested content topics")


class SessionNotFoundError(WorkflowError):
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")
