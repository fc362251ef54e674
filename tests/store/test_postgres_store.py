from unittest.mock import MagicMock

import psycopg2
import pytest

from fuzzy_search.errors import StoreError, UnsupportedPredicate
from fuzzy_search.store import postgres
from fuzzy_search.store.base import QueryOptions
from fuzzy_search.store.postgres import PostgresDocumentStore, compile_predicate, compile_sort


def _mock_transaction(monkeypatch, rows=None, error=None):
    """Replaces DBTransaction with a MagicMock connection; returns the cursor mock."""
    cursor = MagicMock()
    cursor.fetchall.return_value = rows or []
    if error is not None:
        cursor.execute.side_effect = error

    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor

    transaction = MagicMock()
    transaction.return_value.__enter__.return_value = conn
    transaction.return_value.__exit__.return_value = False
    monkeypatch.setattr(postgres, "DBTransaction", transaction)
    return cursor


def test_compile_empty_predicate():
    assert compile_predicate({}) == ("TRUE", [])
    assert compile_predicate(None) == ("TRUE", [])


def test_compile_regex_disjunction():
    sql, params = compile_predicate({"$or": [
        {"name": {"$regex": "nguyen", "$options": "i"}},
        {"author.name": {"$regex": "Van", "$options": ""}},
    ]})

    assert sql == "(((doc #>> %s) ~* %s) OR ((doc #>> %s) ~ %s))"
    assert params == [["name"], "nguyen", ["author", "name"], "Van"]


def test_compile_equality_and_operators():
    sql, params = compile_predicate({"status": "published", "views": {"$gte": 10, "$lt": 100}})

    assert sql == "(doc #> %s @> %s::jsonb) AND ((doc #> %s >= %s::jsonb) AND (doc #> %s < %s::jsonb))"
    assert params[0] == ["status"]
    assert params[1].adapted == "published"
    assert params[3].adapted == 10


def test_compile_in_exists_and_null():
    sql, _ = compile_predicate({"_id": {"$in": []}})
    assert sql == "FALSE"

    sql, params = compile_predicate({"deletedAt": None, "tags": {"$exists": True}})
    assert sql == "(doc #> %s IS NULL OR doc #> %s = 'null'::jsonb) AND (doc #> %s IS NOT NULL)"
    assert params == [["deletedAt"], ["deletedAt"], ["tags"]]


def test_compile_rejects_unknown_operators():
    with pytest.raises(UnsupportedPredicate):
        compile_predicate({"$where": "1"})
    with pytest.raises(UnsupportedPredicate):
        compile_predicate({"views": {"$mod": [2, 0]}})


def test_compile_sort_always_ends_with_id():
    assert compile_sort({}) == ("id ASC", [])
    assert compile_sort({"createdAt": -1}) == ("doc #> %s DESC NULLS LAST, id ASC", [["createdAt"]])


def test_find_builds_paged_query(monkeypatch):
    cursor = _mock_transaction(monkeypatch, rows=[{"doc": {"_id": "p1", "title": "Huế", "body": "..."}}])
    store = PostgresDocumentStore("posts")

    docs = store.find(
        {"title": {"$regex": "hue", "$options": "i"}},
        QueryOptions(select=["title"], sort={"createdAt": -1}, skip=20, limit=10),
    )

    assert docs == [{"_id": "p1", "title": "Huế"}]
    sql, params = cursor.execute.call_args[0]
    assert sql == (
        "SELECT doc FROM documents WHERE collection = %s AND ((doc #>> %s) ~* %s) "
        "ORDER BY doc #> %s DESC NULLS LAST, id ASC LIMIT %s OFFSET %s"
    )
    assert params == ("posts", ["title"], "hue", ["createdAt"], 10, 20)


def test_count_documents(monkeypatch):
    cursor = _mock_transaction(monkeypatch, rows=[{"cnt": 7}])

    assert PostgresDocumentStore("posts").count_documents({}) == 7
    sql, params = cursor.execute.call_args[0]
    assert sql == "SELECT COUNT(*) AS cnt FROM documents WHERE collection = %s AND TRUE"
    assert params == ("posts",)


def test_populate_resolves_references(monkeypatch):
    cursor = _mock_transaction(monkeypatch)
    cursor.fetchall.side_effect = [
        [{"doc": {"_id": "p1", "author": "u1"}}, {"doc": {"_id": "p2", "author": "u9"}}],
        [{"doc": {"_id": "u1", "name": "Lan"}}],
    ]
    store = PostgresDocumentStore("posts", relations={"author": "users"})

    docs = store.find({}, QueryOptions(populate=["author"]))

    assert docs[0]["author"] == {"_id": "u1", "name": "Lan"}
    assert docs[1]["author"] == "u9"
    _, params = cursor.execute.call_args[0]
    assert params == ("users", ["u1", "u9"])


def test_driver_errors_become_store_errors(monkeypatch):
    _mock_transaction(monkeypatch, error=psycopg2.OperationalError("connection refused"))

    with pytest.raises(StoreError) as excinfo:
        PostgresDocumentStore("posts").count_documents({})
    assert isinstance(excinfo.value.__cause__, psycopg2.OperationalError)


def test_rejects_invalid_table_name():
    with pytest.raises(ValueError):
        PostgresDocumentStore("posts", table="documents; DROP TABLE users")


def test_ensure_schema_creates_table_and_index(monkeypatch):
    cursor = _mock_transaction(monkeypatch)

    PostgresDocumentStore("posts").ensure_schema()

    sql, params = cursor.execute.call_args[0]
    assert "CREATE TABLE IF NOT EXISTS documents" in sql
    assert "CREATE INDEX IF NOT EXISTS documents_collection_idx ON documents (collection)" in sql
    assert params == ()


def test_insert_stores_document_as_jsonb(monkeypatch):
    cursor = _mock_transaction(monkeypatch)
    doc = {"_id": "p1", "title": "Đà Lạt"}

    PostgresDocumentStore("posts", table="articles").insert(doc)

    sql, params = cursor.execute.call_args[0]
    assert sql == "INSERT INTO articles (collection, doc) VALUES (%s, %s)"
    assert params[0] == "posts"
    assert params[1].adapted == doc
