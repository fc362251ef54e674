# fuzzy_search/fuzzy/ranker.py
# Responsibility: Recomputes a true fuzzy score for store candidates, drops weak matches and orders the rest.

from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from fuzzy_search.fuzzy.edit_distance import similarity
from fuzzy_search.fuzzy.normalizer import TextNormalizer
from fuzzy_search.fuzzy.types import ScoredResult, field_texts

EXACT_SCORE = 1.0
PREFIX_SCORE = 0.9
CONTAINS_SCORE = 0.7
WORD_BONUS = 0.2


def score_and_filter(
    candidates: Iterable[Mapping],
    term: str,
    fields: Sequence[str],
    threshold: float,
) -> List[ScoredResult]:
    """
    Scores each candidate, keeps those scoring >= threshold, highest first.

    Ties keep retrieval order (sorted() is stable).

    Args:
        candidates (iterable): Records fetched with the coarse predicate.
        term (str): Raw search term.
        fields (list): Fields to score, in priority order for ties.
        threshold (float): Minimum overall score.

    Returns:
        list[ScoredResult]: Wrapped copies of the surviving records.
    """
    normalized_term = TextNormalizer.normalize((term or "").strip())
    if not normalized_term:
        return []

    scored = []
    for record in candidates:
        score, matched_field = score_record(record, normalized_term, fields)
        if score >= threshold:
            scored.append(ScoredResult(dict(record), score, matched_field))

    return sorted(scored, key=lambda r: r.relevance_score, reverse=True)


def score_record(
    record: Mapping,
    normalized_term: str,
    fields: Sequence[str],
) -> Tuple[float, Optional[str]]:
    """Returns (best field score, field that produced it). Missing fields are skipped."""
    best_score = 0.0
    matched_field = None

    for field in fields:
        for value in field_texts(record, field):
            score = score_value(normalized_term, TextNormalizer.normalize(value))
            if score > best_score:
                best_score = score
                matched_field = field

    return best_score, matched_field


def score_value(normalized_term: str, normalized_value: str) -> float:
    """
    Base score plus word-overlap bonus.
    The sum is deliberately not clamped, a strong match can exceed 1.0.
    """
    if normalized_value == normalized_term:
        score = EXACT_SCORE
    elif normalized_value.startswith(normalized_term):
        score = PREFIX_SCORE
    elif normalized_term in normalized_value:
        score = CONTAINS_SCORE
    else:
        score = similarity(normalized_term, normalized_value)

    words = normalized_term.split()
    if words:
        matched_words = sum(1 for word in words if word in normalized_value)
        score += WORD_BONUS * matched_words / len(words)

    return score
