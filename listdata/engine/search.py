"""
Free-text search with relevance scoring and highlighting.

Scoring per scanned field, best field wins:

    exact full-field match      3.0
    contains every query token  2.0
    contains some query token   1.0
    fuzzy-only match            < 0.5 (only with enable_fuzzy)

plus a token-coverage bonus below 0.5, multiplied by the field weight. The
record score adds a bonus below 0.1 that favours matches in earlier search
fields, so ties between records resolve by field position. With equal
weights an exact match therefore always outranks a partial one.

Records scoring zero are dropped. ``max_results`` keeps the highest scoring
records; survivors are returned in input order because ordering belongs to
the sorter.
"""

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from listdata.engine.accessor import FieldAccessor
from listdata.schemas.search import SearchMetrics, SearchOptions, SearchRequest, SearchResult

logger = logging.getLogger(__name__)

EXACT_SCORE = 3.0
ALL_TOKENS_SCORE = 2.0
ANY_TOKEN_SCORE = 1.0
FUZZY_FACTOR = 0.5
COVERAGE_BONUS = 0.5
POSITION_BONUS = 0.1

_TOKEN_STRIP = ".,!?;:"

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to",
        "for", "of", "with", "by", "is", "are", "was", "were", "be", "been",
    }
)  # fmt: skip


@dataclass
class HighlightConfig:
    context: int = 50
    pre_tag: str = "<mark>"
    post_tag: str = "</mark>"


@dataclass
class SearchOutcome:
    """Matched records with index-aligned search results."""

    records: list[Any]
    results: list[SearchResult]
    metrics: SearchMetrics | None = None
    active: bool = False


def tokenize_query(query: str) -> list[str]:
    """Split on whitespace, strip surrounding punctuation and case-fold."""
    tokens = []
    for part in query.split():
        part = part.strip(_TOKEN_STRIP)
        if part:
            tokens.append(part.casefold())
    return tokens


def extract_top_terms(query: str) -> list[str]:
    """Unique query terms longer than two characters, stop words removed."""
    top_terms = []
    seen = set()
    for term in tokenize_query(query):
        if term not in STOP_WORDS and term not in seen and len(term) > 2:
            top_terms.append(term)
            seen.add(term)
    return top_terms


def fuzzy_ratio(text: str, term: str) -> float:
    """Share of the term's characters that occur anywhere in the text."""
    if not term:
        return 0.0
    found = sum(1 for char in term if char in text)
    return found / len(term)


def _fold_with_offsets(text: str) -> tuple[str, list[int]]:
    """Case-fold ``text`` and map every folded character to its source index."""
    parts: list[str] = []
    offsets: list[int] = []
    for index, char in enumerate(text):
        folded = char.casefold()
        parts.append(folded)
        offsets.extend([index] * len(folded))
    return "".join(parts), offsets


def highlight_term(text: str, term: str, config: HighlightConfig) -> str | None:
    """
    Wrap the first case-insensitive occurrence of ``term`` in ``text`` with
    highlight tags.

    The match is located in the case-folded text and mapped back to the
    original characters, so folds that change length ("ß" to "ss") still
    highlight the whole source character. Returns None when the term does
    not occur.
    """
    if not term:
        return None
    folded, offsets = _fold_with_offsets(text)
    index = folded.find(term)
    if index == -1:
        return None

    start = offsets[index]
    end = offsets[index + len(term) - 1] + 1
    context_start = max(0, start - config.context)
    context_end = min(len(text), end + config.context)
    return (
        f"{text[context_start:start]}{config.pre_tag}{text[start:end]}"
        f"{config.post_tag}{text[end:context_end]}"
    )


def score_field(
    text: str,
    query_folded: str,
    tokens: Sequence[str],
    options: SearchOptions,
    fuzzy_threshold: float,
    highlight: HighlightConfig,
) -> tuple[float, list[str]]:
    """
    Score one field's text against the query.

    Returns:
        Tuple of (unweighted score, highlights)
    """
    folded = text.casefold()
    matched = [token for token in tokens if token in folded]
    highlights: list[str] = []

    if options.enable_highlighting:
        for token in matched:
            snippet = highlight_term(text, token, highlight)
            if snippet is not None:
                highlights.append(snippet)

    if matched:
        coverage = len(matched) / len(tokens)
        if folded.strip() == query_folded:
            tier = EXACT_SCORE
        elif len(matched) == len(tokens):
            tier = ALL_TOKENS_SCORE
        else:
            tier = ANY_TOKEN_SCORE
        return tier + coverage * COVERAGE_BONUS, highlights

    if options.enable_fuzzy:
        ratios = [fuzzy_ratio(folded, token) for token in tokens]
        best = max(ratios)
        if best > fuzzy_threshold:
            return best * FUZZY_FACTOR, highlights

    return 0.0, highlights


def search_record(
    record: Any,
    query_folded: str,
    tokens: Sequence[str],
    options: SearchOptions,
    accessor: FieldAccessor,
    fuzzy_threshold: float,
    highlight: HighlightConfig,
    field_match_counts: dict[str, int],
) -> SearchResult | None:
    """Score a single record; None when no scanned field matches."""
    fields = options.search_fields or accessor.string_fields(record)
    if not fields:
        return None

    best = 0.0
    highlights: list[str] = []
    matched_fields: list[str] = []

    for position, name in enumerate(fields):
        lookup = accessor.get(record, name)
        if lookup.value is None:
            continue
        text = lookup.value.as_text()
        if not text:
            continue

        raw_score, field_highlights = score_field(
            text, query_folded, tokens, options, fuzzy_threshold, highlight
        )
        if raw_score <= 0:
            continue

        weight = options.field_weights.get(name, 1.0)
        bonus = POSITION_BONUS * (len(fields) - position) / len(fields)
        best = max(best, raw_score * weight + bonus)
        matched_fields.append(name)
        highlights.extend(field_highlights)
        field_match_counts[name] = field_match_counts.get(name, 0) + 1

    if not matched_fields:
        return None
    return SearchResult(score=best, highlights=highlights, matched_fields=matched_fields)


def apply_search(
    records: Sequence[Any],
    search: SearchRequest | None,
    accessor: FieldAccessor,
    fuzzy_threshold: float = 0.6,
    highlight: HighlightConfig | None = None,
) -> SearchOutcome:
    """
    Match records against a free-text query.

    An absent search, an empty query, or a query with no tokens disables the
    stage: every record passes through and no search results are produced.
    """
    if search is None or not search.query.strip():
        return SearchOutcome(records=list(records), results=[])

    tokens = tokenize_query(search.query)
    if not tokens:
        return SearchOutcome(records=list(records), results=[])

    started = time.perf_counter()
    highlight = highlight or HighlightConfig()
    options = search.options
    query_folded = " ".join(search.query.casefold().split()).strip(_TOKEN_STRIP)
    field_match_counts: dict[str, int] = {}

    scored: list[tuple[int, Any, SearchResult]] = []
    for index, record in enumerate(records):
        result = search_record(
            record,
            query_folded,
            tokens,
            options,
            accessor,
            fuzzy_threshold,
            highlight,
            field_match_counts,
        )
        if result is not None and result.score > 0:
            scored.append((index, record, result))

    if options.max_results > 0 and len(scored) > options.max_results:
        # Stable: equal scores keep input order, then restore input order.
        ranked = sorted(scored, key=lambda entry: entry[2].score, reverse=True)
        scored = sorted(ranked[: options.max_results], key=lambda entry: entry[0])

    elapsed_ms = (time.perf_counter() - started) * 1000
    metrics = SearchMetrics(
        total_results=len(scored),
        query_time_ms=round(elapsed_ms, 3),
        top_terms=extract_top_terms(search.query),
        field_match_counts=field_match_counts,
    )
    logger.debug(
        "Search applied",
        extra={"tokens": len(tokens), "input_count": len(records), "matched_count": len(scored)},
    )
    return SearchOutcome(
        records=[record for _, record, _ in scored],
        results=[result for _, _, result in scored],
        metrics=metrics,
        active=True,
    )
