"""Scraper package: site profiles, polite fetching and content extraction."""

from vosdroits.scraper.cancellation import CancelToken
from vosdroits.scraper.client import SiteClient
from vosdroits.scraper.errors import ScraperError
from vosdroits.scraper.models import (
    Article,
    Category,
    LifeEvent,
    LifeEventDetail,
    LifeEventSection,
    RawPage,
    SearchResult,
)
from vosdroits.scraper.sites import IMPOTS, SERVICE_PUBLIC, SITES, SiteProfile, get_site

__all__ = [
    "SiteClient",
    "SiteProfile",
    "CancelToken",
    "ScraperError",
    "SITES",
    "SERVICE_PUBLIC",
    "IMPOTS",
    "get_site",
    "RawPage",
    "SearchResult",
    "Article",
    "Category",
    "LifeEvent",
    "LifeEventDetail",
    "LifeEventSection",
]
