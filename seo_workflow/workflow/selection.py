"""Running selection of topic, keywords and improvements fed into generation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from seo_workflow.workflow.errors import TopicNotAllowedError


@dataclass(slots=True)
class Selection:
    topic: str = ""
    keywords: set[str] = field(default_factory=set)
    improvements: set[str] = field(default_factory=set)

    def toggle_keyword(self, keyword: str) -> bool:
        """Flip membership of ``keyword``. Returns True if it is now selected."""
        return _toggle(self.keywords, keyword)

    def toggle_improvement(self, improvement: str) -> bool:
        return _toggle(self.improvements, improvement)

    def set_topic(self, topic: str, allowed: Sequence[str] | None = None) -> None:
        """
        Replace the topic.

        When ``allowed`` is non-empty the topic is a closed choice and must be
        one of its entries; otherwise any free-form text is accepted.
        """
        if allowed and topic not in allowed:
            raise TopicNotAllowedError(topic, list(allowed))
        self.topic = topic

    def clear(self) -> None:
        self.topic = ""
        self.keywords.clear()
        self.improvements.clear()

    def selected_keywords(self) -> list[str]:
        return sorted(self.keywords)

    def selected_improvements(self) -> list[str]:
        return sorted(self.improvements)


def _toggle(members: set[str], item: str) -> bool:
    if item in members:
        members.discard(item)
        return False
    members.add(item)
    return True


def has_topics_available(content_topics: Sequence[str] | None) -> bool:
    return bool(content_topics)
