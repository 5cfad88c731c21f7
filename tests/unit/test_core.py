"""Unit tests for the pure workflow components."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from seo_workflow.core.security import credential_fingerprint, redact_credential
from seo_workflow.workflow.config import WorkflowConfig
from seo_workflow.workflow.errors import TopicNotAllowedError
from seo_workflow.workflow.parser import coerce_analysis, parse_analysis
from seo_workflow.workflow.selection import Selection, has_topics_available
from seo_workflow.workflow.state import RawText, Structured
from seo_workflow.workflow.summary import (
    count_words,
    extraction_summary,
    generation_summary,
)


# ── Parser tests ────────────────────────────────────────────
class TestAnalysisParser:
    def test_structured_payload_keeps_keyword_order_and_duplicates(self, full_analysis):
        parsed = parse_analysis(Structured(full_analysis))
        assert parsed is not None
        assert parsed.current_keywords == ["smart wifi", "router", "smart wifi"]

    def test_text_payload_decodes_all_fields(self, full_analysis):
        parsed = parse_analysis(RawText(json.dumps(full_analysis)))
        assert parsed.score == 64
        assert parsed.suggested_keywords == ["mesh network", "wifi coverage"]
        assert parsed.content_topics == ["Wifi range tips", "Choosing a router"]
        assert parsed.improvements == ["Add FAQ schema", "Shorten the intro"]

    def test_spec_example_payload(self):
        raw = '{"SEOAnalysis":{"SEOScore":72,"CurrentKeywords":["wifi"]}}'
        parsed = parse_analysis(RawText(raw))
        assert parsed.score == 72
        assert parsed.current_keywords == ["wifi"]
        assert parsed.improvements is None
        assert parsed.content_topics is None

    def test_prose_returns_none(self):
        assert parse_analysis(RawText("The page reads well but lacks headings.")) is None

    def test_decode_failure_is_deterministic(self):
        raw = RawText("{not json")
        assert parse_analysis(raw) is None
        assert parse_analysis(raw) is None
        assert raw.text == "{not json"

    def test_markdown_fence_is_stripped(self, full_analysis):
        raw = "```json\n" + json.dumps(full_analysis) + "\n```"
        assert parse_analysis(RawText(raw)).score == 64

    def test_missing_key_path_returns_none(self):
        assert parse_analysis(Structured({"Analysis": {"SEOScore": 10}})) is None

    def test_non_mapping_section_returns_none(self):
        assert parse_analysis(Structured({"SEOAnalysis": ["not", "a", "mapping"]})) is None

    def test_top_level_list_returns_none(self):
        assert parse_analysis(RawText("[1, 2, 3]")) is None

    def test_deeply_nested_text_returns_none(self):
        nested = "[" * 100_000 + "]" * 100_000
        assert parse_analysis(coerce_analysis(nested)) is None

    def test_none_payload_returns_none(self):
        assert parse_analysis(None) is None

    def test_bad_field_does_not_invalidate_others(self):
        payload = {
            "SEOAnalysis": {
                "SEOScore": "high",
                "CurrentKeywords": "wifi",
                "Improvements": ["Add alt text"],
            }
        }
        parsed = parse_analysis(Structured(payload))
        assert parsed.score is None
        assert parsed.current_keywords is None
        assert parsed.improvements == ["Add alt text"]

    @pytest.mark.parametrize(
        ("raw_score", "expected"),
        [(88, 88), (71.9, 71), ("55", 55), (True, None), (None, None), (float("nan"), None)],
    )
    def test_score_coercion(self, raw_score, expected):
        parsed = parse_analysis(Structured({"SEOAnalysis": {"SEOScore": raw_score}}))
        assert parsed.score == expected

    def test_score_outside_range_is_kept(self):
        parsed = parse_analysis(Structured({"SEOAnalysis": {"SEOScore": 140}}))
        assert parsed.score == 140

    def test_coerce_analysis_tags_by_type(self):
        assert coerce_analysis("text") == RawText("text")
        assert coerce_analysis({"a": 1}) == Structured({"a": 1})


# ── Selection tests ─────────────────────────────────────────
class TestSelection:
    def test_toggle_twice_restores_original(self):
        selection = Selection(keywords={"router"})
        selection.toggle_keyword("mesh")
        selection.toggle_keyword("mesh")
        assert selection.keywords == {"router"}

    def test_toggle_reports_membership(self):
        selection = Selection()
        assert selection.toggle_improvement("Add FAQ schema") is True
        assert selection.toggle_improvement("Add FAQ schema") is False
        assert selection.improvements == set()

    def test_free_form_topic_without_suggestions(self):
        selection = Selection()
        selection.set_topic("anything at all", allowed=[])
        assert selection.topic == "anything at all"

    def test_closed_topic_rejects_unknown(self):
        selection = Selection(topic="old")
        with pytest.raises(TopicNotAllowedError):
            selection.set_topic("made up", allowed=["Wifi range tips"])
        assert selection.topic == "old"

    def test_selected_lists_are_sorted(self):
        selection = Selection(keywords={"b", "a"})
        assert selection.selected_keywords() == ["a", "b"]

    def test_clear(self):
        selection = Selection(topic="t", keywords={"k"}, improvements={"i"})
        selection.clear()
        assert selection == Selection()

    def test_has_topics_available(self):
        assert has_topics_available(["x"]) is True
        assert has_topics_available([]) is False
        assert has_topics_available(None) is False


# ── Summary tests ───────────────────────────────────────────
class TestSummary:
    def test_extraction_summary(self):
        assert extraction_summary("Hello world. Another sentence!") == {
            "characters": 30,
            "words": 4,
            "sentences": 2,
        }

    def test_generation_summary_ignores_markdown_markers(self):
        assert generation_summary("# Wifi Speed\n\nBody text.") == {
            "lines": 3,
            "words": 4,
            "characters": 24,
        }

    def test_ellipsis_counts_as_one_sentence_end(self):
        assert extraction_summary("Wait... what?!")["sentences"] == 2

    @pytest.mark.parametrize("content", [None, ""])
    def test_absent_content_returns_none(self, content):
        assert extraction_summary(content) is None
        assert generation_summary(content) is None

    def test_whitespace_only_is_counted_not_none(self):
        assert generation_summary("\n") == {"lines": 2, "words": 0, "characters": 1}

    def test_count_words_handles_hyphenated_and_bullets(self):
        assert count_words("- wi-fi 6 router *") == 3


# ── Config tests ────────────────────────────────────────────
class TestConfig:
    def test_edit_returns_new_record(self, config):
        edited = config.edit(generation_type="Blog Post")
        assert edited.generation_type == "Blog Post"
        assert config.generation_type == "FAQ"

    def test_edit_ignores_none(self, config):
        assert config.edit(credential=None) == config

    def test_config_is_frozen(self, config):
        with pytest.raises(ValidationError):
            config.max_length = 10

    def test_unknown_generation_type_rejected(self, config):
        with pytest.raises(ValidationError):
            config.edit(generation_type="Poem")

    def test_public_view_redacts_credential(self, config):
        view = config.public_view()
        assert view["credential"].endswith("1234")
        assert "sk-test" not in view["credential"]
        assert view["has_credential"] is True

    def test_from_settings_defaults(self):
        from seo_workflow.core.config import Settings

        cfg = WorkflowConfig.from_settings(Settings(default_api_key="k", default_max_tokens=900))
        assert cfg.credential == "k"
        assert cfg.max_length == 900
        assert cfg.creativity == 0.7

    def test_settings_strip_trailing_slash(self):
        from seo_workflow.core.config import Settings

        assert Settings(stage_api_base_url="http://svc:5000/").stage_api_base_url == "http://svc:5000"


# ── Security tests ──────────────────────────────────────────
class TestSecurity:
    def test_redact_short_credential_fully(self):
        assert redact_credential("abc") == "***"

    def test_redact_empty(self):
        assert redact_credential("") == ""
        assert redact_credential(None) == ""

    def test_fingerprint_deterministic(self):
        assert credential_fingerprint("k1") == credential_fingerprint("k1")
        assert credential_fingerprint("k1") != credential_fingerprint("k2")
        assert credential_fingerprint("") is None

    def test_log_processor_masks_credentials(self):
        from seo_workflow.core.logging import mask_credentials

        event = mask_credentials(None, "info", {"event": "x", "api_key": "sk-abcdefgh1234"})
        assert event["api_key"] == "*" * 11 + "1234"
        assert event["event"] == "x"
