# fuzzy_search/store/base.py
# Responsibility: The document store contract consumed by the search orchestrator.
# Every backend (in-memory, PostgreSQL, ...) implements DocumentStore.

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from fuzzy_search.errors import UnsupportedPredicate
from fuzzy_search.fuzzy.types import CandidateRecord, Predicate

ASCENDING = 1
DESCENDING = -1

# Operators a field condition may use besides plain equality.
FIELD_OPERATORS = frozenset({
    "$regex", "$options", "$eq", "$ne", "$in", "$nin", "$gt", "$gte", "$lt", "$lte", "$exists",
})
LOGICAL_OPERATORS = frozenset({"$and", "$or"})


@dataclass(frozen=True)
class QueryOptions:
    """
    Declarative description of a find() call.
    Replaces chained select/sort/skip/limit/populate builder calls.
    """
    select: Optional[Sequence[str]] = None
    sort: Mapping[str, Union[int, str]] = field(default_factory=dict)
    skip: int = 0
    limit: Optional[int] = None
    populate: Sequence[str] = ()


class DocumentStore(ABC):
    @abstractmethod
    def find(self, predicate: Predicate, options: QueryOptions) -> List[CandidateRecord]:
        pass

    @abstractmethod
    def count_documents(self, predicate: Predicate) -> int:
        pass


def normalize_direction(direction: Union[int, str]) -> int:
    """Maps 1/-1, "asc"/"desc" (and "ascending"/"descending") to ASCENDING/DESCENDING."""
    if isinstance(direction, str):
        lowered = direction.strip().lower()
        if lowered in ("asc", "ascending", "1"):
            return ASCENDING
        if lowered in ("desc", "descending", "-1"):
            return DESCENDING
        raise UnsupportedPredicate(f"Unknown sort direction: {direction!r}")
    return DESCENDING if direction < 0 else ASCENDING


def is_operator_condition(condition: Any) -> bool:
    """True when a field condition is an operator document ({"$regex": ...}) rather than a literal."""
    return (
        isinstance(condition, Mapping)
        and bool(condition)
        and all(isinstance(k, str) and k.startswith("$") for k in condition)
    )


def check_operators(condition: Dict[str, Any]) -> None:
    unknown = set(condition) - FIELD_OPERATORS
    if unknown:
        raise UnsupportedPredicate(f"Unsupported operator(s): {', '.join(sorted(unknown))}")


def project(record: CandidateRecord, select: Optional[Sequence[str]]) -> CandidateRecord:
    """Keeps only the selected top-level fields (plus _id). No selection keeps everything."""
    if not select:
        return record
    wanted = {name.split(".", 1)[0] for name in select}
    wanted.add("_id")
    return {k: v for k, v in record.items() if k in wanted}
