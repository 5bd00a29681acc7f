"""impots.gouv.fr tools.

Routes
------
GET /impots/search?query=<q>&limit=10   search_impots
GET /impots/article?url=<url>           get_impots_article
GET /impots/categories                  list_impots_categories
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Query, Request

from vosdroits.api.schemas import (
    ERROR_RESPONSES,
    ArticleResponse,
    CategoriesResponse,
    SearchResponse,
)
from vosdroits.scraper import SiteClient

router = APIRouter(responses=ERROR_RESPONSES)

SITE_ID = "impots"


def _client(request: Request) -> SiteClient:
    return request.app.state.clients[SITE_ID]


@router.get("/search", response_model=SearchResponse)
def search_impots(
    request: Request,
    query: str = Query(..., min_length=1, description="Search query for tax information and forms"),
    limit: int = Query(10, description="Maximum number of results (1-100)"),
) -> dict[str, Any]:
    """Search for tax forms, articles and procedures on impots.gouv.fr."""
    results = _client(request).search(query, limit, cancel=request.app.state.cancel)
    return {
        "summary": f"Found {len(results)} tax documents",
        "results": [asdict(r) for r in results],
    }


@router.get("/article", response_model=ArticleResponse)
def get_impots_article(
    request: Request,
    url: str = Query(..., min_length=1, description="URL of the tax article or form"),
) -> dict[str, Any]:
    """Retrieve a specific tax article or form from impots.gouv.fr."""
    article = _client(request).get_document(url, cancel=request.app.state.cancel)
    return {"summary": f"Retrieved tax document: {article.title}", **asdict(article)}


@router.get("/categories", response_model=CategoriesResponse)
def list_impots_categories(request: Request) -> dict[str, Any]:
    """List available categories of tax information."""
    categories = _client(request).list_categories(cancel=request.app.state.cancel)
    return {
        "summary": f"Found {len(categories)} tax categories",
        "categories": [asdict(c) for c in categories],
    }
