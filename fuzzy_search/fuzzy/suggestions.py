# fuzzy_search/fuzzy/suggestions.py
# Responsibility: Derives a short list of matching values and words from a candidate batch.

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from fuzzy_search.fuzzy.edit_distance import similarity
from fuzzy_search.fuzzy.levels import FuzzyLevel
from fuzzy_search.fuzzy.normalizer import TextNormalizer
from fuzzy_search.fuzzy.types import field_texts

DEFAULT_SUGGESTION_LIMIT = 5


def generate_suggestions(
    candidates: Iterable[Mapping],
    term: str,
    fields: Sequence[str],
    limit: int = DEFAULT_SUGGESTION_LIMIT,
    fuzzy_level: Optional[Union[str, FuzzyLevel]] = None,
) -> List[str]:
    """
    Collects whole values and single words that contain the term after normalization.

    Logic:
    1. Walk candidates/fields in order, adding matching values and matching words
       to an insertion-ordered set (exact, case-sensitive equality).
    2. Keep the first `limit` entries.
    3. Sort those by similarity to the term, best first.

    Step 2 happens before step 3, so a better entry found after the cut is not returned.

    Args:
        candidates (iterable): Records fetched for the term.
        term (str): Raw search term.
        fields (list): Fields to harvest.
        limit (int): Maximum number of suggestions.
        fuzzy_level: Accepted for parity with the search calls; containment decides membership.

    Returns:
        list[str]: Distinct suggestions.
    """
    normalized_term = TextNormalizer.normalize((term or "").strip())
    if not normalized_term or limit <= 0:
        return []

    found: Dict[str, None] = {}
    for record in candidates:
        for field in fields:
            for value in field_texts(record, field):
                if normalized_term in TextNormalizer.normalize(value):
                    found.setdefault(value, None)

                for word in value.split():
                    if normalized_term in TextNormalizer.normalize(word):
                        found.setdefault(word, None)

    kept = list(found)[:limit]
    return sorted(
        kept,
        key=lambda entry: similarity(normalized_term, TextNormalizer.normalize(entry)),
        reverse=True,
    )
