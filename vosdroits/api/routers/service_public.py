"""service-public.gouv.fr tools.

Routes
------
GET /service-public/search?query=<q>&limit=10      search_procedures
GET /service-public/article?url=<url>              get_article
GET /service-public/categories                     list_categories
GET /service-public/life-events                    list_life_events
GET /service-public/life-events/detail?url=<url>   get_life_event_details
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Query, Request

from vosdroits.api.schemas import (
    ERROR_RESPONSES,
    ArticleResponse,
    CategoriesResponse,
    LifeEventDetailResponse,
    LifeEventsResponse,
    SearchResponse,
)
from vosdroits.scraper import SiteClient

router = APIRouter(responses=ERROR_RESPONSES)

SITE_ID = "service-public"


def _client(request: Request) -> SiteClient:
    return request.app.state.clients[SITE_ID]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/search", response_model=SearchResponse)
def search_procedures(
    request: Request,
    query: str = Query(..., min_length=1, description="Search query for procedures"),
    limit: int = Query(10, description="Maximum number of results (1-100)"),
) -> dict[str, Any]:
    """Search for procedures on service-public.gouv.fr."""
    results = _client(request).search(query, limit, cancel=request.app.state.cancel)
    return {
        "summary": f"Found {len(results)} procedures",
        "results": [asdict(r) for r in results],
    }


@router.get("/article", response_model=ArticleResponse)
def get_article(
    request: Request,
    url: str = Query(..., min_length=1, description="URL of the article to retrieve"),
) -> dict[str, Any]:
    """Retrieve a specific article from service-public.gouv.fr."""
    article = _client(request).get_document(url, cancel=request.app.state.cancel)
    return {"summary": f"Retrieved article: {article.title}", **asdict(article)}


@router.get("/categories", response_model=CategoriesResponse)
def list_categories(request: Request) -> dict[str, Any]:
    """List available categories of public service information."""
    categories = _client(request).list_categories(cancel=request.app.state.cancel)
    return {
        "summary": f"Found {len(categories)} categories",
        "categories": [asdict(c) for c in categories],
    }


@router.get("/life-events", response_model=LifeEventsResponse)
def list_life_events(request: Request) -> dict[str, Any]:
    """List the "what to do if..." life events (birth, moving, bereavement...)."""
    events = _client(request).list_life_events(cancel=request.app.state.cancel)
    return {
        "summary": f"Found {len(events)} life events",
        "events": [asdict(e) for e in events],
    }


@router.get("/life-events/detail", response_model=LifeEventDetailResponse)
def get_life_event_details(
    request: Request,
    url: str = Query(..., min_length=1, description="URL of a life-event content sheet (F-prefixed)"),
) -> dict[str, Any]:
    """Retrieve one life event split into an introduction and titled sections."""
    detail = _client(request).get_life_event_detail(url, cancel=request.app.state.cancel)
    return {
        "summary": f"Retrieved life event: {detail.title} ({len(detail.sections)} sections)",
        **asdict(detail),
    }
