"""
Read-only display metrics derived from stage artifacts.

Pure functions of their input: nothing is cached, and absent or empty
content yields None rather than a zero-filled summary.
"""

from __future__ import annotations

import re

from typing_extensions import TypedDict

_SENTENCE_END = re.compile(r"[.!?]+")
_HAS_WORD_CHAR = re.compile(r"[^\W_]")


class ExtractionSummary(TypedDict):
    characters: int
    words: int
    sentences: int


class GenerationSummary(TypedDict):
    lines: int
    words: int
    characters: int


def count_words(text: str) -> int:
    """Whitespace-delimited tokens holding at least one letter or digit.

    Markdown markers such as ``#``, ``-`` or ``*`` are not counted.
    """
    return sum(1 for token in text.split() if _HAS_WORD_CHAR.search(token))


def count_sentences(text: str) -> int:
    return len(_SENTENCE_END.findall(text))


def extraction_summary(content: str | None) -> ExtractionSummary | None:
    if not content:
        return None
    return ExtractionSummary(
        characters=len(content),
        words=count_words(content),
        sentences=count_sentences(content),
    )


def generation_summary(content: str | None) -> GenerationSummary | None:
    if not content:
        return None
    return GenerationSummary(
        lines=content.count("\n") + 1,
        words=count_words(content),
        characters=len(content),
    )
