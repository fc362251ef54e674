# fuzzy_search/fuzzy/edit_distance.py
# Responsibility: Levenshtein distance and the similarity ratio derived from it.

from rapidfuzz.distance import Levenshtein


def levenshtein(a: str, b: str) -> int:
    """
    Classic edit distance over code points.
    Insertion, deletion and substitution each cost 1.

    Args:
        a (str): First string (usually already normalized).
        b (str): Second string.

    Returns:
        int: Minimum number of single-character edits turning a into b.
    """
    a = a or ""
    b = b or ""
    if not a:
        return len(b)
    if not b:
        return len(a)
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """
    Similarity in [0, 1]: (longest - distance) / longest.
    Two empty strings are identical (1.0).
    """
    a = a or ""
    b = b or ""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein(a, b)) / longest
