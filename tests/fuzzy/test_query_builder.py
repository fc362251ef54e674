import re

from fuzzy_search.fuzzy.query_builder import build_predicate, merge_predicates
from fuzzy_search.store.memory import matches


def _regex(pattern, options="i"):
    return {"$regex": pattern, "$options": options}


def test_blank_term_adds_no_constraint():
    assert build_predicate("", ["name"]) == {}
    assert build_predicate("   ", ["name"]) == {}
    assert build_predicate(None, ["name"]) == {}


def test_no_fields_adds_no_constraint():
    assert build_predicate("nguyen", []) == {}


def test_single_word_single_field():
    assert build_predicate("  nguyen ", ["name"]) == {"$or": [{"name": _regex("nguyen")}]}


def test_case_sensitive_drops_option():
    predicate = build_predicate("Nguyen", ["name"], case_sensitive=True, fold_accents=False)
    assert predicate == {"$or": [{"name": _regex("Nguyen", "")}]}


def test_accented_term_adds_folded_variant():
    predicate = build_predicate("Văn", ["name"])
    assert predicate == {"$or": [{"name": _regex("Văn")}, {"name": _regex("van")}]}


def test_folding_can_be_disabled():
    predicate = build_predicate("Văn", ["name"], fold_accents=False)
    assert predicate == {"$or": [{"name": _regex("Văn")}]}


def test_multi_word_term_adds_word_clauses():
    predicate = build_predicate("nguyen van a", ["name", "title"])
    phrase = r"nguyen\s+van\s+a"

    # 1. Phrase + each word longer than one character, for every field
    assert predicate == {"$or": [
        {"name": _regex(phrase)},
        {"name": _regex("nguyen")},
        {"name": _regex("van")},
        {"title": _regex(phrase)},
        {"title": _regex("nguyen")},
        {"title": _regex("van")},
    ]}


def test_multi_word_accented_term():
    predicate = build_predicate("Nguyễn Văn", ["name"])
    clauses = predicate["$or"]

    assert {"name": _regex(r"Nguyễn\s+Văn")} in clauses
    assert {"name": _regex("Nguyễn")} in clauses
    assert {"name": _regex(r"nguyen\s+van")} in clauses
    assert {"name": _regex("van")} in clauses
    assert len(clauses) == 6


def test_regex_special_characters_are_escaped():
    predicate = build_predicate("c++ (beta)", ["title"])
    pattern = predicate["$or"][0]["title"]["$regex"]

    assert re.search(pattern, "Learn C++ (beta) today", re.IGNORECASE)
    assert not re.search(pattern, "cc (beta)", re.IGNORECASE)


def test_exact_match_case_insensitive_is_anchored():
    predicate = build_predicate(" Nguyen Van A ", ["name"], exact_match=True)
    assert predicate == {"$or": [{"name": _regex("^" + re.escape("Nguyen Van A") + "$")}]}
    assert matches({"name": "nguyen van a"}, predicate)
    assert not matches({"name": "nguyen van ab"}, predicate)


def test_exact_match_case_sensitive_uses_equality():
    predicate = build_predicate("Nguyen", ["name", "title"], exact_match=True, case_sensitive=True)
    assert predicate == {"$or": [{"name": "Nguyen"}, {"title": "Nguyen"}]}


def test_predicate_is_a_superset_of_substring_matches():
    predicate = build_predicate("nguyen van", ["name"])

    assert matches({"name": "Nguyen Van A"}, predicate)
    # Word clauses let partial matches through; the ranker narrows them later
    assert matches({"name": "Tran Van C"}, predicate)
    assert not matches({"name": "Le Thi D"}, predicate)


def test_accent_classes_reach_accented_values():
    plain = build_predicate("nguyen van", ["name"])
    expanded = build_predicate("nguyen van", ["name"], accent_classes=True)

    assert not matches({"name": "Nguyễn Thị B"}, plain)
    assert matches({"name": "Nguyễn Thị B"}, expanded)
    assert matches({"name": "NGUYỄN VĂN A"}, expanded)


def test_merge_predicates():
    fuzzy = {"$or": [{"name": _regex("a")}]}
    additional = {"status": "published", "$or": [{"a": 1}, {"b": 2}]}

    assert merge_predicates({}, fuzzy) == fuzzy
    assert merge_predicates(additional, {}) == additional
    assert merge_predicates(None, None) == {}
    assert merge_predicates(additional, fuzzy) == {"$and": [additional, fuzzy]}
