# fuzzy_search/store/memory.py
# Responsibility: DocumentStore backed by a Python list. Evaluates the predicate dialect locally.
# Used for tests, fixtures and small embedded collections.

import copy
import logging
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from fuzzy_search.errors import UnsupportedPredicate
from fuzzy_search.fuzzy.types import CandidateRecord, Predicate, resolve_field
from fuzzy_search.store.base import (
    DESCENDING,
    DocumentStore,
    QueryOptions,
    check_operators,
    is_operator_condition,
    normalize_direction,
    project,
)

logger = logging.getLogger(__name__)

_MISSING = object()
_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}


class InMemoryDocumentStore(DocumentStore):
    """
    Holds documents in memory and answers find/count_documents like a document database would.

    relations maps a populate path to the documents it references (matched on "_id").
    """

    def __init__(
        self,
        documents: Iterable[CandidateRecord] = (),
        relations: Optional[Mapping[str, Sequence[CandidateRecord]]] = None,
    ):
        self.documents: List[CandidateRecord] = [dict(d) for d in documents]
        self.relations = dict(relations or {})

    def insert(self, document: CandidateRecord) -> None:
        self.documents.append(dict(document))

    def find(self, predicate: Predicate, options: QueryOptions) -> List[CandidateRecord]:
        results = [d for d in self.documents if matches(d, predicate)]
        results = _sort_records(results, options.sort)

        start = max(options.skip, 0)
        end = start + options.limit if options.limit is not None else None
        page = results[start:end]

        output = []
        for record in page:
            snapshot = project(copy.deepcopy(record), options.select)
            output.append(self._populate(snapshot, options.populate))

        logger.debug("[Store] memory find matched=%d returned=%d", len(results), len(output))
        return output

    def count_documents(self, predicate: Predicate) -> int:
        return sum(1 for d in self.documents if matches(d, predicate))

    def _populate(self, record: CandidateRecord, paths: Sequence[str]) -> CandidateRecord:
        for path in paths:
            if path not in record:
                continue
            targets = {doc.get("_id"): doc for doc in self.relations.get(path, ())}
            value = record[path]
            if isinstance(value, list):
                record[path] = [copy.deepcopy(targets.get(v, v)) for v in value]
            else:
                record[path] = copy.deepcopy(targets.get(value, value))
        return record


# -------------------------------
# Predicate evaluation
# -------------------------------
def matches(record: Mapping[str, Any], predicate: Optional[Predicate]) -> bool:
    """True when the record satisfies every clause of the predicate. {} matches everything."""
    for key, condition in (predicate or {}).items():
        if key == "$or":
            if not any(matches(record, sub) for sub in condition):
                return False
        elif key == "$and":
            if not all(matches(record, sub) for sub in condition):
                return False
        elif key.startswith("$"):
            raise UnsupportedPredicate(f"Unsupported logical operator: {key}")
        elif not _match_field(resolve_field(record, key, _MISSING), condition):
            return False
    return True


def _match_field(value: Any, condition: Any) -> bool:
    if not is_operator_condition(condition):
        return _equals(value, condition)

    check_operators(condition)
    for op, arg in condition.items():
        if op == "$options":
            continue
        if op == "$regex":
            if not _regex_match(value, arg, condition.get("$options", "")):
                return False
        elif op == "$eq":
            if not _equals(value, arg):
                return False
        elif op == "$ne":
            if _equals(value, arg):
                return False
        elif op == "$in":
            if not any(_equals(value, a) for a in arg):
                return False
        elif op == "$nin":
            if any(_equals(value, a) for a in arg):
                return False
        elif op == "$exists":
            if (value is not _MISSING) != bool(arg):
                return False
        elif not _compare(value, op, arg):
            return False
    return True


def _equals(value: Any, expected: Any) -> bool:
    if value is _MISSING:
        return expected is None
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return value == expected


def _regex_match(value: Any, pattern: str, options: str) -> bool:
    flags = 0
    for letter in options or "":
        flags |= _REGEX_FLAGS.get(letter, 0)

    if isinstance(value, list):
        return any(_regex_match(v, pattern, options) for v in value)
    if not isinstance(value, str):
        return False
    return re.search(pattern, value, flags) is not None


def _compare(value: Any, op: str, arg: Any) -> bool:
    if value is _MISSING or value is None:
        return False
    try:
        if op == "$gt":
            return value > arg
        if op == "$gte":
            return value >= arg
        if op == "$lt":
            return value < arg
        return value <= arg
    except TypeError:
        return False


# -------------------------------
# Sorting
# -------------------------------
def _sort_records(records: List[CandidateRecord], sort: Mapping[str, Any]) -> List[CandidateRecord]:
    """Multi-key stable sort; records missing a sort field go last in either direction."""
    ordered = list(records)
    for name, direction in reversed(list((sort or {}).items())):
        descending = normalize_direction(direction) == DESCENDING
        present = [r for r in ordered if resolve_field(r, name, _MISSING) not in (_MISSING, None)]
        absent = [r for r in ordered if resolve_field(r, name, _MISSING) in (_MISSING, None)]
        try:
            present.sort(key=lambda r: resolve_field(r, name), reverse=descending)
        except TypeError:
            present.sort(key=lambda r: str(resolve_field(r, name)), reverse=descending)
        ordered = present + absent
    return ordered
