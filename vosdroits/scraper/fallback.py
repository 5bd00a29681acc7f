"""Deterministic results for list operations whose crawl failed or came back empty.

Never used for single-document fetches: a missing page has no meaningful
placeholder.
"""

from __future__ import annotations

import logging
from typing import List

from vosdroits.scraper.models import Category, LifeEvent, SearchResult
from vosdroits.scraper.sites import SiteProfile

logger = logging.getLogger(__name__)

SEARCH_SUGGESTION = "Try modifying your search terms or visit the website directly."


def fallback_search(site: SiteProfile, query: str) -> List[SearchResult]:
    """One synthetic record pointing at the search page that would have been crawled."""
    logger.info("search fallback for %r on %s", query, site.name)
    return [
        SearchResult(
            title=f"No results found for: {query}",
            url=site.search_url(query),
            description=SEARCH_SUGGESTION,
            type="Info",
        )
    ]


def fallback_categories(site: SiteProfile) -> List[Category]:
    logger.info("using default categories for %s", site.name)
    return list(site.default_categories)


def fallback_life_events(site: SiteProfile) -> List[LifeEvent]:
    logger.info("using default life events for %s", site.name)
    return list(site.default_life_events)
