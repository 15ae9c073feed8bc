"""
Unit tests for the AI-Usage Attribution Matcher
"""

import pytest

from creativity_telemetry.telemetry.attribution import (
    AIUsageMatcher,
    answer_phrases,
    usage_percentage,
)


ASSISTANT_REPLY = "You could use a brick as a paperweight for heavy documents."


@pytest.fixture
def matcher(test_settings):
    matcher = AIUsageMatcher(settings=test_settings)
    matcher.record_assistant_text(ASSISTANT_REPLY)
    return matcher


class TestAnswerPhrases:

    def test_phrases_must_exceed_min_length(self):
        assert answer_phrases("ab cd efgh", [3], 10) == []
        assert answer_phrases("ab cd efghi", [3], 10) == ["ab cd efghi"]

    def test_phrases_are_lowercased(self):
        assert answer_phrases("Paperweight For Heavy", [3], 10) == ["paperweight for heavy"]

    def test_short_answers_have_no_long_ngrams(self):
        phrases = answer_phrases("paperweight for heavy documents", [3, 5], 10)

        assert phrases == ["paperweight for heavy", "for heavy documents"]


class TestAttribution:
    """Tests for attributing answers to assistant replies"""

    def test_verbatim_phrase_is_detected(self, matcher):
        result = matcher.attribute("paperweight for heavy documents")

        assert result.matched_chars > 0
        assert 0 < result.usage_percentage <= 100
        assert any(m.phrase == "paperweight for heavy" for m in result.matches)
        assert all(m.similarity == 1.0 for m in result.matches)

    def test_answer_reusing_reply_wording(self, test_settings):
        matcher = AIUsageMatcher(settings=test_settings)
        matcher.record_assistant_text("Try using it as a paperweight for heavy documents")
        result = matcher.attribute("I will use it as a paperweight for heavy documents on my desk")

        phrases = [m.phrase for m in result.matches]
        assert "a paperweight for heavy documents" in phrases
        assert matcher.tracking.ai_text_used_in_answers >= len("a paperweight for heavy documents")
        assert matcher.tracking.ai_usage_percentage > 0

    def test_partial_overlap_percentage(self, matcher):
        answer = "I think a paperweight for heavy things works"
        result = matcher.attribute(answer)

        # "a paperweight for" (17) + "paperweight for heavy" (21)
        assert result.matched_chars == 38
        assert result.usage_percentage == pytest.approx(38 / len(answer) * 100)

    def test_empty_answer(self, matcher):
        result = matcher.attribute("")

        assert result.usage_percentage == 0
        assert result.matches == []
        assert matcher.tracking.total_user_answer_length == 0

    def test_no_assistant_text(self, test_settings):
        matcher = AIUsageMatcher(settings=test_settings)
        result = matcher.attribute("a completely original answer here")

        assert result.usage_percentage == 0
        assert matcher.tracking.total_user_answer_length == len("a completely original answer here")
        assert matcher.tracking.ai_usage_percentage == 0

    def test_unrelated_answer(self, matcher):
        result = matcher.attribute("grind it into pigment for cave paintings")

        assert result.matched_chars == 0
        assert result.usage_percentage == 0

    def test_case_insensitive_matching(self, matcher):
        result = matcher.attribute("PAPERWEIGHT FOR HEAVY")

        assert result.matched_chars == len("paperweight for heavy")

    def test_every_reply_containing_a_phrase_counts(self, matcher):
        matcher.record_assistant_text("Or a paperweight for heavy maps.")
        result = matcher.attribute("paperweight for heavy")

        assert len(result.matches) == 2
        assert result.matched_chars == 2 * len("paperweight for heavy")
        assert result.usage_percentage == 100


class TestTracking:
    """Tests for the running usage aggregate"""

    def test_cumulative_percentage(self, matcher):
        matcher.attribute("paperweight for heavy")
        matcher.attribute("grind it into pigment for cave paintings")

        tracking = matcher.tracking
        expected = 21 / (21 + len("grind it into pigment for cave paintings")) * 100
        assert tracking.ai_usage_percentage == pytest.approx(expected)
        assert 0 <= tracking.ai_usage_percentage <= 100

    def test_response_length_accumulates(self, matcher):
        matcher.record_assistant_text("short")

        assert matcher.tracking.total_ai_response_length == len(ASSISTANT_REPLY) + 5
        assert len(matcher.assistant_texts) == 2

    def test_empty_reply_ignored(self, matcher):
        matcher.record_assistant_text("")

        assert len(matcher.assistant_texts) == 1

    def test_copies_from_chat(self, matcher):
        matcher.record_copy_from_chat()
        matcher.record_copy_from_chat()

        assert matcher.tracking.ai_responses_copied == 2

    def test_tracking_is_a_copy(self, matcher):
        matcher.attribute("paperweight for heavy")
        tracking = matcher.tracking
        tracking.matched_segments.clear()

        assert len(matcher.tracking.matched_segments) == 1

    def test_reset(self, matcher):
        matcher.attribute("paperweight for heavy")
        matcher.reset()

        assert matcher.assistant_texts == []
        assert matcher.tracking.ai_text_used_in_answers == 0


class TestUsagePercentage:

    @pytest.mark.parametrize("matched,length,expected", [
        (0, 0, 0.0),
        (10, 0, 0.0),
        (5, 20, 25.0),
        (50, 20, 100.0),
    ])
    def test_bounds(self, matched, length, expected):
        assert usage_percentage(matched, length) == expected
