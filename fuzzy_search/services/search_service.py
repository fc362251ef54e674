# fuzzy_search/services/search_service.py
# Responsibility: Orchestrates fuzzy search (Predicate -> Store -> Rerank) on top of a DocumentStore.

import logging
from functools import lru_cache
from typing import List, Optional, Sequence, Union

from fuzzy_search.config.settings import settings
from fuzzy_search.errors import InvalidSearchInput, StoreError
from fuzzy_search.fuzzy.levels import FuzzyLevel, get_fuzzy_level
from fuzzy_search.fuzzy.query_builder import build_predicate, merge_predicates
from fuzzy_search.fuzzy.ranker import score_and_filter
from fuzzy_search.fuzzy.suggestions import generate_suggestions
from fuzzy_search.fuzzy.types import (
    CandidateRecord,
    PaginatedResult,
    Predicate,
    ScoredResult,
    SearchRequest,
)
from fuzzy_search.store.base import DocumentStore, QueryOptions
from fuzzy_search.store.postgres import PostgresDocumentStore

logger = logging.getLogger(__name__)


class FuzzySearchService:
    """
    Main service class for fuzzy search operations.

    Every operation pushes a broad pattern predicate to the store, then (for ranked
    operations) rescores the returned page in memory. Store errors are not caught here,
    except in count_or_zero.
    """

    def __init__(self, store: DocumentStore, accent_classes: Optional[bool] = None):
        self.store = store
        self.accent_classes = (
            settings.SEARCH.ACCENT_CLASS_PATTERNS if accent_classes is None else accent_classes
        )

    def count(self, term: str, fields: Sequence[str], additional_filter: Optional[Predicate] = None) -> int:
        """
        Counts documents matching the unranked predicate.
        An empty field list is not an error here: only additional_filter is applied.
        """
        if not fields:
            logger.warning("[Search] count() called without fields; applying additional filter only")
        predicate = self._predicate(
            term,
            fields or [],
            additional_filter,
            settings.SEARCH.CASE_SENSITIVE,
            settings.SEARCH.FOLD_ACCENTS,
        )
        return self.store.count_documents(predicate)

    def count_or_zero(
        self, term: str, fields: Sequence[str], additional_filter: Optional[Predicate] = None
    ) -> int:
        """Advisory count (badges, "N new" hints): a store failure yields 0 instead of an error."""
        try:
            return self.count(term, fields, additional_filter)
        except StoreError as e:
            logger.warning("[Search] Advisory count failed, reporting 0: %s", e)
            return 0

    def search(self, request: SearchRequest) -> List[Union[ScoredResult, CandidateRecord]]:
        """
        Fetches one page of candidates and reranks it with the request's fuzzy level.
        A blank term returns the store page as-is.
        """
        self._require_fields(request.fields)
        predicate = self._request_predicate(request)

        candidates = self.store.find(predicate, self._query_options(request))
        if not request.has_term:
            return candidates

        return self._rank(candidates, request)

    def search_paginated(self, request: SearchRequest) -> PaginatedResult:
        """
        Like search(), plus total/total_pages.

        The total counts the unranked predicate, so it is an upper bound on the
        number of documents that survive ranking.
        """
        self._require_fields(request.fields)
        predicate = self._request_predicate(request)

        total = self.store.count_documents(predicate)
        candidates = self.store.find(predicate, self._query_options(request))

        items: List[Union[ScoredResult, CandidateRecord]] = candidates
        if request.has_term:
            items = self._rank(candidates, request)

        logger.debug(
            "[Search] term=%r total=%d fetched=%d kept=%d",
            request.term, total, len(candidates), len(items),
        )
        return PaginatedResult(items=items, total=total, page=request.page, limit=request.limit)

    def suggestions(
        self,
        term: str,
        fields: Sequence[str],
        limit: Optional[int] = None,
        additional_filter: Optional[Predicate] = None,
        fuzzy_level: Optional[Union[str, FuzzyLevel]] = None,
    ) -> List[str]:
        """Returns up to `limit` values/words from matching documents, closest to the term first."""
        self._require_fields(fields)
        if not term or not term.strip():
            return []

        limit = settings.SEARCH.SUGGESTION_LIMIT if limit is None else limit
        if limit <= 0:
            return []

        predicate = self._predicate(
            term,
            fields,
            additional_filter,
            settings.SEARCH.CASE_SENSITIVE,
            settings.SEARCH.FOLD_ACCENTS,
        )
        options = QueryOptions(
            select=list(fields),
            limit=limit * settings.SEARCH.SUGGESTION_CANDIDATE_FACTOR,
        )
        candidates = self.store.find(predicate, options)
        return generate_suggestions(candidates, term, fields, limit, fuzzy_level)

    def _rank(self, candidates: List[CandidateRecord], request: SearchRequest) -> List[ScoredResult]:
        level = get_fuzzy_level(request.fuzzy_level)
        return score_and_filter(candidates, request.term, request.fields, level.threshold)

    def _request_predicate(self, request: SearchRequest) -> Predicate:
        return self._predicate(
            request.term,
            request.fields,
            request.additional_filter,
            request.case_sensitive,
            request.fold_accents,
        )

    def _predicate(
        self,
        term: str,
        fields: Sequence[str],
        additional_filter: Optional[Predicate],
        case_sensitive: bool,
        fold_accents: bool,
    ) -> Predicate:
        fuzzy = build_predicate(
            term,
            fields,
            case_sensitive=case_sensitive,
            fold_accents=fold_accents,
            accent_classes=self.accent_classes,
        )
        return merge_predicates(additional_filter, fuzzy)

    @staticmethod
    def _query_options(request: SearchRequest) -> QueryOptions:
        return QueryOptions(
            select=request.select,
            sort=dict(request.sort or {}),
            skip=request.skip,
            limit=request.limit,
            populate=tuple(request.populate or ()),
        )

    @staticmethod
    def _require_fields(fields: Sequence[str]) -> None:
        if not fields:
            raise InvalidSearchInput("At least one field is required for a fuzzy search")


@lru_cache()
def get_search_service(collection: str = settings.SEARCH.DEFAULT_COLLECTION) -> FuzzySearchService:
    """Dependency injection provider: one service per collection."""
    return FuzzySearchService(PostgresDocumentStore(collection))
