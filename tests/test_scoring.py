"""Tests for confidence scoring: keyword regexes, semantic short-circuit and fallbacks."""

import math

import pytest

from conftest import FixedSemantic, RaisingSemantic, SlowSemantic, StubAdapter, run
from dashboard_agent.adapters.scoring import (
    EXACT_MATCH_CONFIDENCE,
    PARTIAL_MATCH_CONFIDENCE,
    ConfidenceScorer,
    clamp_confidence,
    is_asking_for_advice,
)
from dashboard_agent.exceptions import SemanticTimeoutError

KEYWORDS = ["streak", "habit"]


class TestKeywordConfidence:
    """Tests for keyword_confidence"""

    def setup_method(self):
        self.scorer = ConfidenceScorer("streaks", semantic=None)

    def test_whole_word_match(self):
        """Test that a whole-word keyword scores 0.9"""
        assert self.scorer.keyword_confidence("What's my streak?", KEYWORDS) == 0.9

    def test_substring_only_match(self):
        """Test that a keyword inside a longer word scores 0.3"""
        assert self.scorer.keyword_confidence("streaking is cool", KEYWORDS) == 0.3

    def test_no_match(self):
        assert self.scorer.keyword_confidence("what's the weather", KEYWORDS) == 0.0

    @pytest.mark.parametrize("query", ["STREAK", "my Streak!", "(habit)", "habit, please"])
    def test_whole_word_ignores_case_and_punctuation(self, query):
        assert self.scorer.keyword_confidence(query, KEYWORDS) == EXACT_MATCH_CONFIDENCE

    def test_exact_match_beats_earlier_substring(self):
        """Test that a later whole-word keyword wins over an earlier substring hit"""
        assert self.scorer.keyword_confidence("streaking habit", KEYWORDS) == EXACT_MATCH_CONFIDENCE

    def test_substring_when_no_exact_anywhere(self):
        assert self.scorer.keyword_confidence("habitual streaking", KEYWORDS) == PARTIAL_MATCH_CONFIDENCE

    def test_regex_special_characters_are_literal(self):
        """Test that keywords with regex metacharacters are escaped"""
        assert self.scorer.keyword_confidence("is the check-in done", ["check-in"]) == 0.9
        assert self.scorer.keyword_confidence("checkxin", ["check.in"]) == 0.0

    def test_empty_keywords(self):
        assert self.scorer.keyword_confidence("anything", []) == 0.0
        assert self.scorer.keyword_confidence("anything", [""]) == 0.0

    def test_regex_cache_is_per_instance(self):
        """Test that each scorer compiles and keeps its own patterns"""
        other = ConfidenceScorer("notes", semantic=None)
        self.scorer.keyword_confidence("my streak", ["streak"])
        assert "streak" in self.scorer._regex_cache
        assert other._regex_cache == {}

    def test_regex_cache_reused(self):
        self.scorer.keyword_confidence("my streak", ["streak"])
        first = self.scorer._regex_cache["streak"]
        self.scorer.keyword_confidence("another streak", ["streak"])
        assert self.scorer._regex_cache["streak"] is first


class TestSemanticScoring:
    """Tests for the semantic-first path and its fallbacks"""

    def test_semantic_above_threshold_short_circuits(self, logger):
        semantic = FixedSemantic(default=0.8)
        scorer = ConfidenceScorer("streaks", semantic=semantic, logger=logger)
        assert run(scorer.score("totally unrelated", KEYWORDS)) == 0.8

    def test_semantic_at_threshold_falls_back_to_keywords(self, logger):
        """Test that a score equal to the threshold does not short-circuit"""
        scorer = ConfidenceScorer("streaks", semantic=FixedSemantic(default=0.5), logger=logger)
        assert run(scorer.score("What's my streak?", KEYWORDS)) == 0.9
        assert run(scorer.score("nothing relevant", KEYWORDS)) == 0.0

    def test_semantic_error_falls_back(self, logger):
        scorer = ConfidenceScorer("streaks", semantic=RaisingSemantic(), logger=logger, component="streaksAdapter")
        assert run(scorer.score("What's my streak?", KEYWORDS)) == 0.9
        assert logger.records[-1]["action"] == "getConfidence"
        assert logger.records[-1]["component"] == "streaksAdapter"

    def test_semantic_timeout_falls_back(self, logger):
        scorer = ConfidenceScorer("streaks", semantic=SlowSemantic(), logger=logger, timeout=0.01)
        assert run(scorer.score("streaking is cool", KEYWORDS)) == 0.3
        assert isinstance(logger.records[-1]["error"], SemanticTimeoutError)

    def test_semantic_out_of_range_is_clamped(self, logger):
        scorer = ConfidenceScorer("streaks", semantic=FixedSemantic(default=7.5), logger=logger)
        assert run(scorer.score("anything", KEYWORDS)) == 1.0

    def test_semantic_nan_is_ignored(self, logger):
        scorer = ConfidenceScorer("streaks", semantic=FixedSemantic(default=float("nan")), logger=logger)
        assert run(scorer.score("my habit", KEYWORDS)) == 0.9

    def test_disabled_semantic(self):
        scorer = ConfidenceScorer("streaks", semantic=None)
        assert run(scorer.semantic_confidence("my streak")) is None


class TestAdapterConfidence:
    """Tests for keyword confidence as seen through an adapter"""

    def test_whole_word_match(self, make_adapter):
        adapter = make_adapter(StubAdapter)
        assert run(adapter.get_confidence("What's my streak?")) == 0.9

    def test_substring_match(self, make_adapter):
        adapter = make_adapter(StubAdapter)
        assert run(adapter.get_confidence("streaking is cool")) == 0.3

    def test_rejecting_semantic_service_never_raises(self, make_adapter):
        adapter = make_adapter(StubAdapter, semantic=RaisingSemantic())
        assert run(adapter.get_confidence("habit")) == 0.9

    @pytest.mark.parametrize("query", ["", "   ", "streak" * 50, "🔥🔥", "HABIT?!", "\n\t"])
    def test_confidence_always_in_range(self, make_adapter, query):
        adapter = make_adapter(StubAdapter, semantic=FixedSemantic(default=-3))
        confidence = run(adapter.get_confidence(query))
        assert 0.0 <= confidence <= 1.0


class TestHelpers:
    @pytest.mark.parametrize("value,expected", [
        (None, 0.0),
        (float("nan"), 0.0),
        ("not a number", 0.0),
        (-0.2, 0.0),
        (1.7, 1.0),
        (0.42, 0.42),
    ])
    def test_clamp_confidence(self, value, expected):
        result = clamp_confidence(value)
        assert not math.isnan(result)
        assert result == expected

    @pytest.mark.parametrize("query", [
        "What should I do to keep my streak?",
        "How do I stay focused?",
        "Any tips for better sleep",
        "Help me organize my notes",
    ])
    def test_advice_requests(self, query):
        assert is_asking_for_advice(query)

    @pytest.mark.parametrize("query", ["What's my streak?", "How many notes do I have", "show my photos"])
    def test_status_requests(self, query):
        assert not is_asking_for_advice(query)
