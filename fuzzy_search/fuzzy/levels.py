# fuzzy_search/fuzzy/levels.py
# Responsibility: Named tolerance presets (threshold / max distance) selected by callers.

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Union


@dataclass(frozen=True)
class FuzzyLevel:
    name: str
    threshold: float
    max_distance: int
    description: str


STRICT = FuzzyLevel("STRICT", 0.7, 2, "Precise matching, little tolerance")
NORMAL = FuzzyLevel("NORMAL", 0.5, 4, "Balance between precision and flexibility")
LOOSE = FuzzyLevel("LOOSE", 0.3, 6, "Flexible matching, more results")

FUZZY_LEVELS: Mapping[str, FuzzyLevel] = MappingProxyType({
    STRICT.name: STRICT,
    NORMAL.name: NORMAL,
    LOOSE.name: LOOSE,
})

DEFAULT_FUZZY_LEVEL = NORMAL


def get_fuzzy_level(level: Optional[Union[str, FuzzyLevel]]) -> FuzzyLevel:
    """
    Resolves a preset by name (case-insensitive).
    A FuzzyLevel instance is returned as-is; anything unrecognized falls back to NORMAL.
    """
    if isinstance(level, FuzzyLevel):
        return level
    if not level:
        return DEFAULT_FUZZY_LEVEL
    return FUZZY_LEVELS.get(str(level).strip().upper(), DEFAULT_FUZZY_LEVEL)
