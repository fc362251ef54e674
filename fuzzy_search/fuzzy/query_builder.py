# fuzzy_search/fuzzy/query_builder.py
# Responsibility: Translates a raw term into a broad, pattern-based predicate the document store can execute.
# The store cannot evaluate edit distance, so the predicate over-matches and the ranker narrows it afterwards.

import re
from typing import List, Optional, Sequence, Tuple

from fuzzy_search.fuzzy.normalizer import TextNormalizer
from fuzzy_search.fuzzy.types import Predicate

CASE_INSENSITIVE = "i"


def build_predicate(
    term: Optional[str],
    fields: Sequence[str],
    case_sensitive: bool = False,
    fold_accents: bool = True,
    exact_match: bool = False,
    accent_classes: bool = False,
) -> Predicate:
    """
    Builds a disjunctive predicate over `fields`.

    Logic:
    1. Blank term (or no fields) -> {} (no constraint).
    2. exact_match -> field equals the trimmed term (anchored regex when case-insensitive).
    3. Otherwise, for each field and each pattern variant (verbatim, folded):
       - one "field contains pattern" clause,
       - one "field contains word" clause per word longer than one character
         when the pattern has several words.

    Args:
        term (str): Raw user input.
        fields (list): Field names to search.
        case_sensitive (bool): Drop the "i" regex option.
        fold_accents (bool): Add the diacritic-folded variant of the term.
        exact_match (bool): Equality instead of substring matching.
        accent_classes (bool): Expand the folded variant into accent character classes
            so unaccented input also reaches accented stored values.

    Returns:
        dict: Predicate in the store dialect, e.g. {"$or": [{"name": {"$regex": ..., "$options": "i"}}]}.
    """
    if not term or not term.strip() or not fields:
        return {}

    trimmed = term.strip()
    options = "" if case_sensitive else CASE_INSENSITIVE

    if exact_match:
        if case_sensitive:
            return {"$or": [{field: trimmed} for field in fields]}
        anchored = f"^{re.escape(trimmed)}$"
        return {"$or": [{field: {"$regex": anchored, "$options": options}} for field in fields]}

    conditions: List[Predicate] = []
    for field in fields:
        for regex in _clause_patterns(trimmed, fold_accents, accent_classes):
            clause = {field: {"$regex": regex, "$options": options}}
            if clause not in conditions:
                conditions.append(clause)

    return {"$or": conditions}


def merge_predicates(additional: Optional[Predicate], fuzzy: Optional[Predicate]) -> Predicate:
    """
    Combines the caller's filter with the fuzzy predicate.
    The additional filter is kept intact inside an $and so its own $or (if any) survives.
    """
    if not fuzzy:
        return dict(additional or {})
    if not additional:
        return dict(fuzzy)
    return {"$and": [additional, fuzzy]}


def _clause_patterns(trimmed: str, fold_accents: bool, accent_classes: bool) -> List[str]:
    variants: List[Tuple[str, bool]] = [(trimmed, False)]

    if fold_accents:
        folded = TextNormalizer.fold_accents(trimmed)
        if accent_classes:
            variants.append((folded, True))
        elif folded != trimmed:
            variants.append((folded, False))

    patterns: List[str] = []
    for text, expand in variants:
        words = text.split()
        patterns.append(r"\s+".join(_word_regex(w, expand) for w in words))
        if len(words) > 1:
            patterns.extend(_word_regex(w, expand) for w in words if len(w) > 1)
    return patterns


def _word_regex(word: str, expand: bool) -> str:
    if not expand:
        return re.escape(word)

    parts = []
    for char in word:
        letters = TextNormalizer.variants_of(char)
        parts.append(f"[{letters}]" if letters else re.escape(char))
    return "".join(parts)
