# fuzzy_search/routers/search.py
# Responsibility: Handles search API endpoints. Validates input and formats output.

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from fuzzy_search.config.settings import settings
from fuzzy_search.errors import InvalidSearchInput, StoreError
from fuzzy_search.fuzzy.types import ScoredResult, SearchRequest, resolve_field
from fuzzy_search.services.search_service import FuzzySearchService, get_search_service
from fuzzy_search.snippet.highlighter import highlight_match

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/search",
    tags=["Search"]
)

# --- Pydantic Models ---
class SearchResultItem(BaseModel):
    document: Dict[str, Any]
    score: Optional[float] = None
    matched_field: Optional[str] = None
    highlight: Optional[str] = None

class SearchResponse(BaseModel):
    query: str
    items: List[SearchResultItem]
    total: int
    page: int
    limit: int
    total_pages: int

class SuggestionResponse(BaseModel):
    query: str
    suggestions: List[str]

class CountResponse(BaseModel):
    query: str
    count: int

# --- Dependency Injection ---
def get_service(
    collection: str = Query(settings.SEARCH.DEFAULT_COLLECTION, description="Collection to search")
) -> FuzzySearchService:
    """Provider for the per-collection FuzzySearchService."""
    return get_search_service(collection)

def parse_fields(
    fields: Optional[str] = Query(None, description="Comma-separated field names (e.g. 'title,content')")
) -> List[str]:
    if fields is None:
        return list(settings.SEARCH.DEFAULT_FIELDS)
    return [f.strip() for f in fields.split(",") if f.strip()]

# --- Endpoints ---
@router.get("", response_model=SearchResponse)
def search_endpoint(
    q: str = Query("", description="Search term. Empty returns the unranked page."),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.SEARCH.DEFAULT_PAGE_LIMIT, ge=1, le=settings.SEARCH.MAX_PAGE_LIMIT),
    level: str = Query(settings.SEARCH.DEFAULT_FUZZY_LEVEL, description="STRICT, NORMAL or LOOSE"),
    case_sensitive: bool = Query(settings.SEARCH.CASE_SENSITIVE),
    fold_accents: bool = Query(settings.SEARCH.FOLD_ACCENTS),
    fields: List[str] = Depends(parse_fields),
    service: FuzzySearchService = Depends(get_service)
):
    """
    Ranked, paginated fuzzy search.
    total/total_pages count the broad store match, so they can exceed the ranked item count.
    """
    try:
        request = SearchRequest(
            term=q,
            fields=fields,
            page=page,
            limit=limit,
            sort=dict(settings.SEARCH.DEFAULT_SORT),
            fuzzy_level=level,
            case_sensitive=case_sensitive,
            fold_accents=fold_accents,
        )
        result = service.search_paginated(request)
    except InvalidSearchInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        logger.error("[API] Search failed: %s", e)
        raise HTTPException(status_code=503, detail="Document store unavailable")

    items = []
    for item in result.items:
        if isinstance(item, ScoredResult):
            matched = item.matched_field
            value = resolve_field(item.record, matched) if matched else None
            items.append(SearchResultItem(
                document=item.record,
                score=item.relevance_score,
                matched_field=matched,
                highlight=highlight_match(value, q) if isinstance(value, str) else None,
            ))
        else:
            items.append(SearchResultItem(document=item))

    return SearchResponse(
        query=q,
        items=items,
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )

@router.get("/suggestions", response_model=SuggestionResponse)
def suggestions_endpoint(
    q: str = Query(..., min_length=1, description="Partial search term"),
    limit: int = Query(settings.SEARCH.SUGGESTION_LIMIT, ge=1, le=50),
    level: str = Query(settings.SEARCH.DEFAULT_FUZZY_LEVEL),
    fields: List[str] = Depends(parse_fields),
    service: FuzzySearchService = Depends(get_service)
):
    """Search-as-you-type suggestions."""
    try:
        suggestions = service.suggestions(q, fields, limit=limit, fuzzy_level=level)
    except InvalidSearchInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        logger.error("[API] Suggestions failed: %s", e)
        raise HTTPException(status_code=503, detail="Document store unavailable")

    return SuggestionResponse(query=q, suggestions=suggestions)

@router.get("/count", response_model=CountResponse)
def count_endpoint(
    q: str = Query(""),
    fields: List[str] = Depends(parse_fields),
    service: FuzzySearchService = Depends(get_service)
):
    """Counts documents matching the broad (unranked) predicate."""
    try:
        count = service.count(q, fields)
    except StoreError as e:
        logger.error("[API] Count failed: %s", e)
        raise HTTPException(status_code=503, detail="Document store unavailable")

    return CountResponse(query=q, count=count)
