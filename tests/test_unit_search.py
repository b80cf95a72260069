"""
Unit tests for free-text search.

Tests cover:
- Query tokenization and top-term extraction
- Score tiers (exact > all tokens > any token) and field position tie-breaks
- Field weights, fuzzy matching and max_results truncation
- Highlight snippets
- Disabled search (empty or punctuation-only query)
- Search metrics
"""

import pytest

from listdata.engine.accessor import PathAccessor
from listdata.engine.search import (
    HighlightConfig,
    apply_search,
    extract_top_terms,
    fuzzy_ratio,
    highlight_term,
    score_field,
    tokenize_query,
)
from listdata.schemas import SearchOptions, SearchRequest


def _search(query: str, **options) -> SearchRequest:
    return SearchRequest(query=query, options=SearchOptions(**options))


class TestQueryParsing:
    """Tests for tokenize_query and extract_top_terms."""

    @pytest.mark.anyio
    async def test_tokenize_strips_punctuation_and_folds_case(self):
        assert tokenize_query("Hello, World!  again") == ["hello", "world", "again"]

    @pytest.mark.anyio
    async def test_tokenize_punctuation_only(self):
        assert tokenize_query("?! ...") == []

    @pytest.mark.anyio
    async def test_top_terms_drop_stop_words_short_terms_and_duplicates(self):
        assert extract_top_terms("The quick brown fox and the fox is ok") == [
            "quick",
            "brown",
            "fox",
        ]


class TestScoring:
    """Tests for score_field and fuzzy_ratio."""

    @pytest.mark.anyio
    async def test_score_tiers(self):
        options = SearchOptions()
        config = HighlightConfig()
        exact, _ = score_field("Apple Pie", "apple pie", ["apple", "pie"], options, 0.6, config)
        all_tokens, _ = score_field(
            "green apple pie", "apple pie", ["apple", "pie"], options, 0.6, config
        )
        any_token, _ = score_field("apple tart", "apple pie", ["apple", "pie"], options, 0.6, config)
        assert exact == pytest.approx(3.5)
        assert all_tokens == pytest.approx(2.5)
        assert any_token == pytest.approx(1.25)

    @pytest.mark.anyio
    async def test_no_match_scores_zero(self):
        score, highlights = score_field(
            "banana", "apple", ["apple"], SearchOptions(), 0.6, HighlightConfig()
        )
        assert score == 0.0
        assert highlights == []

    @pytest.mark.anyio
    async def test_fuzzy_ratio(self):
        assert fuzzy_ratio("aple", "apple") == 1.0
        assert fuzzy_ratio("apple", "xyz") == 0.0
        assert fuzzy_ratio("apple", "") == 0.0


class TestHighlighting:
    """Tests for highlight_term."""

    @pytest.mark.anyio
    async def test_wraps_match_with_tags(self):
        assert highlight_term("Apple pie", "pie", HighlightConfig()) == (
            "Apple <mark>pie</mark>"
        )

    @pytest.mark.anyio
    async def test_context_is_capped(self):
        config = HighlightConfig(context=2)
        assert highlight_term("Apple pie", "pie", config) == "e <mark>pie</mark>"

    @pytest.mark.anyio
    async def test_custom_tags(self):
        config = HighlightConfig(pre_tag="[", post_tag="]")
        assert highlight_term("Apple", "app", config) == "[App]le"

    @pytest.mark.anyio
    async def test_absent_term(self):
        assert highlight_term("Apple", "kiwi", HighlightConfig()) is None

    @pytest.mark.anyio
    async def test_length_changing_fold_is_highlighted(self):
        assert highlight_term("Straße", "strasse", HighlightConfig()) == "<mark>Straße</mark>"

    @pytest.mark.anyio
    async def test_match_after_length_changing_fold(self):
        assert highlight_term("Maße und Gewicht", "gewicht", HighlightConfig()) == (
            "Maße und <mark>Gewicht</mark>"
        )

    @pytest.mark.anyio
    async def test_search_highlights_folded_match(self):
        records = [{"street": "Hauptstraße"}]
        outcome = apply_search(records, _search("STRASSE"), PathAccessor())
        assert outcome.results[0].highlights == ["Haupt<mark>straße</mark>"]


class TestApplySearch:
    """Tests for apply_search."""

    @pytest.mark.anyio
    async def test_partial_query_matches_single_record(self, fruit_records):
        outcome = apply_search(fruit_records, _search("ap", search_fields=["name"]), PathAccessor())

        assert outcome.active is True
        assert [r["name"] for r in outcome.records] == ["Apple"]
        assert len(outcome.results) == 1
        assert outcome.results[0].score > 0
        assert outcome.results[0].highlights == ["<mark>Ap</mark>ple"]
        assert outcome.results[0].matched_fields == ["name"]
        assert outcome.metrics.total_results == 1

    @pytest.mark.anyio
    async def test_empty_query_disables_search(self, fruit_records):
        outcome = apply_search(fruit_records, _search("   "), PathAccessor())
        assert outcome.active is False
        assert outcome.records == fruit_records
        assert outcome.results == []
        assert outcome.metrics is None

    @pytest.mark.anyio
    async def test_punctuation_only_query_disables_search(self, fruit_records):
        outcome = apply_search(fruit_records, _search("?!"), PathAccessor())
        assert outcome.active is False
        assert outcome.records == fruit_records

    @pytest.mark.anyio
    async def test_all_string_fields_scanned_when_unspecified(self):
        records = [{"id": 1, "title": "Red", "body": "apple pie"}]
        outcome = apply_search(records, _search("apple"), PathAccessor())
        assert outcome.results[0].matched_fields == ["body"]

    @pytest.mark.anyio
    async def test_exact_match_outscores_partial_match(self):
        records = [{"name": "apple pie"}, {"name": "Apple"}]
        outcome = apply_search(records, _search("apple", search_fields=["name"]), PathAccessor())
        partial, exact = outcome.results
        assert exact.score > partial.score

    @pytest.mark.anyio
    async def test_earlier_field_breaks_ties(self):
        records = [
            {"title": "apple pie", "body": "plain"},
            {"title": "plain", "body": "apple pie"},
        ]
        request = _search("apple", search_fields=["title", "body"])
        first, second = apply_search(records, request, PathAccessor()).results
        assert first.score > second.score

    @pytest.mark.anyio
    async def test_field_weights_scale_scores(self):
        records = [
            {"title": "apple pie", "body": "plain"},
            {"title": "plain", "body": "apple pie"},
        ]
        request = _search("apple", search_fields=["title", "body"], field_weights={"body": 2.0})
        first, second = apply_search(records, request, PathAccessor()).results
        assert second.score > first.score

    @pytest.mark.anyio
    async def test_non_string_fields_are_searchable_by_name(self):
        records = [{"code": 10}, {"code": 11}]
        outcome = apply_search(records, _search("10", search_fields=["code"]), PathAccessor())
        assert outcome.records == [{"code": 10}]

    @pytest.mark.anyio
    async def test_max_results_keeps_best_scores_in_input_order(self):
        records = [{"name": "apple pie"}, {"name": "apple"}, {"name": "green apple"}]
        request = _search("apple", search_fields=["name"], max_results=2)
        outcome = apply_search(records, request, PathAccessor())
        assert [r["name"] for r in outcome.records] == ["apple pie", "apple"]
        assert outcome.metrics.total_results == 2

    @pytest.mark.anyio
    async def test_max_results_zero_is_unbounded(self):
        records = [{"name": "apple pie"}, {"name": "apple"}, {"name": "green apple"}]
        outcome = apply_search(records, _search("apple", max_results=0), PathAccessor())
        assert len(outcome.records) == 3

    @pytest.mark.anyio
    async def test_fuzzy_matching_only_when_enabled(self):
        records = [{"name": "aple"}]
        strict = apply_search(records, _search("apple"), PathAccessor())
        fuzzy = apply_search(records, _search("apple", enable_fuzzy=True), PathAccessor())
        assert strict.records == []
        assert fuzzy.records == records
        assert 0 < fuzzy.results[0].score < 1

    @pytest.mark.anyio
    async def test_highlighting_can_be_disabled(self, fruit_records):
        request = _search("apple", enable_highlighting=False)
        outcome = apply_search(fruit_records, request, PathAccessor())
        assert outcome.results[0].highlights == []

    @pytest.mark.anyio
    async def test_metrics(self):
        records = [
            {"title": "apple pie", "body": "apple"},
            {"title": "plain", "body": "fresh apple"},
        ]
        outcome = apply_search(records, _search("the apple"), PathAccessor())
        assert outcome.metrics.top_terms == ["apple"]
        assert outcome.metrics.field_match_counts == {"title": 1, "body": 2}
        assert outcome.metrics.query_time_ms >= 0
