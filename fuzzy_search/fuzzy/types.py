# fuzzy_search/fuzzy/types.py
# Responsibility: Request/result records passed between the fuzzy core, the orchestrator and the API.

import math
from dataclasses import dataclass, field
from numbers import Number
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from fuzzy_search.errors import InvalidSearchInput
from fuzzy_search.fuzzy.levels import FuzzyLevel

# -------------------------------
# Type aliases
# -------------------------------
CandidateRecord = Dict[str, Any]
Predicate = Dict[str, Any]
SortSpec = Mapping[str, Union[int, str]]

_MISSING = object()


# -------------------------------
# Field access
# -------------------------------
def resolve_field(record: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """
    Looks up a possibly dotted field name ("author.name") in a nested record.
    Returns default when any segment is missing.
    """
    if path in record:
        return record[path]

    current: Any = record
    for segment in path.split("."):
        if not isinstance(current, Mapping):
            return default
        current = current.get(segment, _MISSING)
        if current is _MISSING:
            return default
    return current


def field_texts(record: Mapping[str, Any], path: str) -> List[str]:
    """
    Returns every searchable text of a field.
    Array fields contribute one text per element, matching how the stores test them.
    """
    value = resolve_field(record, path)
    items = value if isinstance(value, (list, tuple)) else [value]
    return [text for text in map(_scalar_text, items) if text is not None]


def _scalar_text(value: Any) -> Optional[str]:
    """Strings are used as-is, numbers are stringified; empty values and other types are skipped."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, Number):
        return str(value)
    return None


# -------------------------------
# Records
# -------------------------------
@dataclass(frozen=True)
class ScoredResult:
    record: CandidateRecord
    relevance_score: float
    matched_field: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.record)
        data["_relevance_score"] = self.relevance_score
        data["_matched_field"] = self.matched_field
        return data


@dataclass
class PaginatedResult:
    items: List[Union[ScoredResult, CandidateRecord]]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [i.to_dict() if isinstance(i, ScoredResult) else dict(i) for i in self.items],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "total_pages": self.total_pages,
        }


@dataclass
class SearchRequest:
    """
    Everything a ranked search needs.
    additional_filter is an opaque predicate forwarded to the store untouched.
    """
    term: str
    fields: Sequence[str]
    additional_filter: Predicate = field(default_factory=dict)
    page: int = 1
    limit: int = 10
    sort: SortSpec = field(default_factory=dict)
    fuzzy_level: Union[str, FuzzyLevel, None] = "NORMAL"
    case_sensitive: bool = False
    fold_accents: bool = True
    select: Optional[Sequence[str]] = None
    populate: Sequence[str] = ()

    def __post_init__(self):
        if self.page < 1:
            raise InvalidSearchInput(f"page must be >= 1, got {self.page}")
        if self.limit < 1:
            raise InvalidSearchInput(f"limit must be >= 1, got {self.limit}")
        if isinstance(self.fields, str):
            self.fields = [self.fields]
        self.fields = list(self.fields or [])
        self.additional_filter = self.additional_filter or {}

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def has_term(self) -> bool:
        return bool(self.term and self.term.strip())
