"""Response schemas shared by the site routers.

Every response carries a human-readable ``summary`` next to the structured
payload, mirroring what a tool-calling agent gets back.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class SearchResultOut(BaseModel):
    title: str
    url: str
    description: str = ""
    type: Optional[str] = None
    date: Optional[str] = None


class SearchResponse(BaseModel):
    summary: str
    results: list[SearchResultOut]


class ArticleResponse(BaseModel):
    summary: str
    title: str
    content: str
    url: str
    type: Optional[str] = None
    description: Optional[str] = None


class CategoryOut(BaseModel):
    name: str
    description: str
    url: Optional[str] = None


class CategoriesResponse(BaseModel):
    summary: str
    categories: list[CategoryOut]


class LifeEventOut(BaseModel):
    title: str
    url: str


class LifeEventsResponse(BaseModel):
    summary: str
    events: list[LifeEventOut]


class LifeEventSectionOut(BaseModel):
    title: str
    content: str


class LifeEventDetailResponse(BaseModel):
    summary: str
    title: str
    url: str
    introduction: str = ""
    sections: list[LifeEventSectionOut]


class ErrorResponse(BaseModel):
    error: str
    detail: str


# Documented on every site router; bodies are built by the app's ScraperError
# handler.  422 stays FastAPI's validation schema although no_content also uses it.
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid URL, foreign domain or wrong page kind"},
    404: {"model": ErrorResponse, "description": "Page not found on the site"},
    499: {"model": ErrorResponse, "description": "Request cancelled by server shutdown"},
    502: {"model": ErrorResponse, "description": "Site unreachable or answered with an error"},
}
