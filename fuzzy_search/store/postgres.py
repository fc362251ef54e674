# fuzzy_search/store/postgres.py
# Responsibility: DocumentStore backed by a PostgreSQL JSONB table.
# Compiles the predicate dialect into a parameterised WHERE clause; regexes run server-side via ~ / ~*.

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

import psycopg2
from psycopg2.extras import Json, RealDictCursor

from fuzzy_search.config.settings import settings
from fuzzy_search.errors import StoreError, UnsupportedPredicate
from fuzzy_search.fuzzy.types import CandidateRecord, Predicate
from fuzzy_search.services.db import DBTransaction
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

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_COMPARISONS = {"$gt": ">", "$gte": ">=", "$lt": "<", "$lte": "<="}

SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS {table} (
        id BIGSERIAL PRIMARY KEY,
        collection TEXT NOT NULL,
        doc JSONB NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
    CREATE INDEX IF NOT EXISTS {table}_collection_idx ON {table} (collection);
"""


class PostgresDocumentStore(DocumentStore):
    """
    One logical collection inside a shared JSONB documents table.

    relations maps a populate path to the collection holding the referenced documents
    (matched on their "_id").
    """

    def __init__(
        self,
        collection: str,
        relations: Optional[Mapping[str, str]] = None,
        table: Optional[str] = None,
        dsn: Optional[str] = None,
    ):
        self.collection = collection
        self.relations = dict(relations or {})
        self.table = table or settings.DB.TABLE_NAME
        self.dsn = dsn
        if not _IDENTIFIER.match(self.table):
            raise ValueError(f"Invalid table name: {self.table!r}")

    def ensure_schema(self) -> None:
        """Creates the documents table and its collection index if they are missing."""
        self._execute(SCHEMA_SQL.format(table=self.table), ())

    def insert(self, document: CandidateRecord) -> None:
        sql = f"INSERT INTO {self.table} (collection, doc) VALUES (%s, %s)"
        self._execute(sql, (self.collection, Json(document)))

    def find(self, predicate: Predicate, options: QueryOptions) -> List[CandidateRecord]:
        where, params = compile_predicate(predicate)
        order, order_params = compile_sort(options.sort)

        sql = f"SELECT doc FROM {self.table} WHERE collection = %s AND {where} ORDER BY {order}"
        all_params: List[Any] = [self.collection, *params, *order_params]

        if options.limit is not None:
            sql += " LIMIT %s"
            all_params.append(options.limit)
        if options.skip:
            sql += " OFFSET %s"
            all_params.append(options.skip)

        rows = self._fetch(sql, tuple(all_params))
        records = [project(row["doc"], options.select) for row in rows]
        for path in options.populate:
            self._populate(records, path)
        return records

    def count_documents(self, predicate: Predicate) -> int:
        where, params = compile_predicate(predicate)
        sql = f"SELECT COUNT(*) AS cnt FROM {self.table} WHERE collection = %s AND {where}"
        rows = self._fetch(sql, (self.collection, *params))
        return int(rows[0]["cnt"]) if rows else 0

    def _populate(self, records: List[CandidateRecord], path: str) -> None:
        target = self.relations.get(path)
        if not target:
            logger.warning("[Store] No relation configured for populate path '%s'", path)
            return

        ids = set()
        for record in records:
            value = record.get(path)
            for ref in value if isinstance(value, list) else [value]:
                if ref is not None:
                    ids.add(str(ref))
        if not ids:
            return

        sql = f"SELECT doc FROM {self.table} WHERE collection = %s AND doc->>'_id' = ANY(%s)"
        rows = self._fetch(sql, (target, sorted(ids)))
        lookup = {str(row["doc"].get("_id")): row["doc"] for row in rows}

        for record in records:
            if path not in record:
                continue
            value = record[path]
            if isinstance(value, list):
                record[path] = [lookup.get(str(v), v) for v in value]
            else:
                record[path] = lookup.get(str(value), value)

    def _fetch(self, sql: str, params: tuple) -> List[Dict[str, Any]]:
        try:
            with DBTransaction(self.dsn) as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(sql, params)
                    return [dict(row) for row in cur.fetchall()]
        except psycopg2.Error as e:
            logger.error("[Store] Query on collection '%s' failed: %s", self.collection, e)
            raise StoreError(f"Document store query failed: {e}") from e

    def _execute(self, sql: str, params: tuple) -> None:
        try:
            with DBTransaction(self.dsn) as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
        except psycopg2.Error as e:
            logger.error("[Store] Statement on collection '%s' failed: %s", self.collection, e)
            raise StoreError(f"Document store statement failed: {e}") from e


# -------------------------------
# Predicate compilation
# -------------------------------
def compile_predicate(predicate: Optional[Predicate]) -> Tuple[str, List[Any]]:
    """
    Translates a predicate into (sql_fragment, params).

    Field names become text[] paths ("author.name" -> ['author', 'name']) bound as parameters,
    so nothing from the predicate is interpolated into the SQL text.

    Example:
        {"$or": [{"name": {"$regex": "nguyen", "$options": "i"}}]}
        -> ("(((doc #>> %s) ~* %s))", [['name'], 'nguyen'])
    """
    if not predicate:
        return "TRUE", []

    parts: List[str] = []
    params: List[Any] = []

    for key, condition in predicate.items():
        if key in ("$or", "$and"):
            if not condition:
                parts.append("FALSE" if key == "$or" else "TRUE")
                continue
            joiner = " OR " if key == "$or" else " AND "
            compiled = [compile_predicate(sub) for sub in condition]
            parts.append("(" + joiner.join(sql for sql, _ in compiled) + ")")
            for _, sub_params in compiled:
                params.extend(sub_params)
        elif key.startswith("$"):
            raise UnsupportedPredicate(f"Unsupported logical operator: {key}")
        else:
            sql, field_params = _compile_field(key.split("."), condition)
            parts.append(sql)
            params.extend(field_params)

    return " AND ".join(parts), params


def compile_sort(sort: Optional[Mapping[str, Any]]) -> Tuple[str, List[Any]]:
    """ORDER BY body; the row id is always the final tie-breaker so pages are stable."""
    parts: List[str] = []
    params: List[Any] = []
    for name, direction in (sort or {}).items():
        keyword = "DESC" if normalize_direction(direction) == DESCENDING else "ASC"
        parts.append(f"doc #> %s {keyword} NULLS LAST")
        params.append(name.split("."))
    parts.append("id ASC")
    return ", ".join(parts), params


def _compile_field(path: List[str], condition: Any) -> Tuple[str, List[Any]]:
    if not is_operator_condition(condition):
        return _equality(path, condition)

    check_operators(condition)
    parts: List[str] = []
    params: List[Any] = []

    for op, arg in condition.items():
        if op == "$options":
            continue
        if op == "$regex":
            operator = "~*" if "i" in condition.get("$options", "") else "~"
            parts.append(f"((doc #>> %s) {operator} %s)")
            params.extend([path, arg])
        elif op == "$eq":
            sql, p = _equality(path, arg)
            parts.append(sql)
            params.extend(p)
        elif op == "$ne":
            sql, p = _equality(path, arg)
            parts.append(f"NOT COALESCE({sql}, FALSE)")
            params.extend(p)
        elif op in ("$in", "$nin"):
            compiled = [_equality(path, value) for value in arg]
            any_sql = "(" + " OR ".join(s for s, _ in compiled) + ")" if compiled else "FALSE"
            for _, p in compiled:
                params.extend(p)
            parts.append(any_sql if op == "$in" else f"NOT COALESCE({any_sql}, FALSE)")
        elif op == "$exists":
            parts.append("(doc #> %s IS NOT NULL)" if arg else "(doc #> %s IS NULL)")
            params.append(path)
        else:
            parts.append(f"(doc #> %s {_COMPARISONS[op]} %s::jsonb)")
            params.extend([path, Json(arg)])

    if not parts:
        return "TRUE", params
    if len(parts) == 1:
        return parts[0], params
    return "(" + " AND ".join(parts) + ")", params


def _equality(path: List[str], value: Any) -> Tuple[str, List[Any]]:
    if value is None:
        return "(doc #> %s IS NULL OR doc #> %s = 'null'::jsonb)", [path, path]
    if isinstance(value, (dict, list)):
        return "(doc #> %s = %s::jsonb)", [path, Json(value)]
    # Scalar containment also matches arrays holding the value.
    return "(doc #> %s @> %s::jsonb)", [path, Json(value)]
