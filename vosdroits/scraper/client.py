"""The five logical operations over one site.

Every operation checks the cancellation signal first, validates its target
before any network activity, performs at most one fetch and returns only
once the crawl has completed, failed or been cancelled.  List operations
(:meth:`SiteClient.search`, :meth:`SiteClient.list_categories`,
:meth:`SiteClient.list_life_events`) never return an empty list: failures
and empty crawls degrade to the site's fallback.  Single-document
operations raise instead.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from vosdroits.config import settings
from vosdroits.scraper.cancellation import CancelToken
from vosdroits.scraper.errors import (
    InvalidTargetError,
    OperationCancelledError,
    ScraperError,
)
from vosdroits.scraper.extractor import (
    ARTICLE_RULES,
    CATEGORY_RULES,
    LIFE_EVENT_DETAIL_RULES,
    LIFE_EVENT_RULES,
    SEARCH_RULES,
    ExtractionSession,
    Rule,
    clamp_limit,
    extract,
)
from vosdroits.scraper.fallback import (
    fallback_categories,
    fallback_life_events,
    fallback_search,
)
from vosdroits.scraper.fetcher import fetch_url
from vosdroits.scraper.models import (
    Article,
    Category,
    LifeEvent,
    LifeEventDetail,
    SearchResult,
)
from vosdroits.scraper.sites import SiteProfile
from vosdroits.scraper.validator import require_content_sheet, validate_url

logger = logging.getLogger(__name__)


class SiteClient:
    """Scraper entry point for one :class:`SiteProfile`."""

    def __init__(self, site: SiteProfile, timeout: Optional[float] = None) -> None:
        self.site = site
        self.timeout = settings.request_timeout if timeout is None else timeout

    def __repr__(self) -> str:
        return f"SiteClient({self.site.id!r}, timeout={self.timeout!r})"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _crawl(
        self,
        url: str,
        rules: Sequence[Rule],
        cancel: CancelToken,
        limit: Optional[int] = None,
    ) -> ExtractionSession:
        """Fetch *url* once and run *rules* over it.

        Fetch failures are recorded in the returned session rather than
        raised; cancellation is always raised.
        """
        session = ExtractionSession(url=url, cancel=cancel, limit=limit)
        try:
            page = fetch_url(url, self.site, timeout=self.timeout, cancel=cancel)
        except OperationCancelledError:
            raise
        except ScraperError as exc:
            outcome = getattr(exc, "outcome", None)
            logger.info("fetch of %s ended as %s", url, outcome.value if outcome else exc.kind)
            session.fail(exc)
            return session
        extract(page, self.site, rules, session)
        return session

    def _require_life_events(self) -> str:
        if not self.site.publishes_life_events:
            raise InvalidTargetError(f"{self.site.name} does not publish life events")
        return self.site.url_for(self.site.life_events_path)

    # ------------------------------------------------------------------
    # List operations
    # ------------------------------------------------------------------
    def search(
        self,
        query: str,
        limit: Optional[int] = None,
        cancel: Optional[CancelToken] = None,
    ) -> List[SearchResult]:
        """Search the site; at most *limit* results (1-100, default 10).

        Returns the single fallback record when the crawl fails or finds
        nothing.

        Raises:
            OperationCancelledError: *cancel* fired.
        """
        cancel = cancel or CancelToken()
        cancel.raise_if_cancelled()
        limit = clamp_limit(limit)
        url = self.site.search_url(query)
        try:
            results = self._crawl(url, SEARCH_RULES, cancel, limit).resolve()
        except OperationCancelledError:
            raise
        except ScraperError as exc:
            logger.warning("search on %s failed: %s", self.site.name, exc)
            results = []
        return results or fallback_search(self.site, query)

    def list_categories(self, cancel: Optional[CancelToken] = None) -> List[Category]:
        """Top-level categories, or the site's default set.

        Raises:
            OperationCancelledError: *cancel* fired.
        """
        cancel = cancel or CancelToken()
        cancel.raise_if_cancelled()
        url = self.site.url_for(self.site.categories_path)
        try:
            categories = self._crawl(url, CATEGORY_RULES, cancel).resolve()
        except OperationCancelledError:
            raise
        except ScraperError as exc:
            logger.warning("category crawl on %s failed: %s", self.site.name, exc)
            categories = []
        return categories or fallback_categories(self.site)

    def list_life_events(self, cancel: Optional[CancelToken] = None) -> List[LifeEvent]:
        """Life events listed by the site, or its default set.

        Raises:
            OperationCancelledError: *cancel* fired.
            InvalidTargetError: the site publishes no life events.
        """
        cancel = cancel or CancelToken()
        cancel.raise_if_cancelled()
        url = self._require_life_events()
        try:
            events = self._crawl(url, LIFE_EVENT_RULES, cancel).resolve()
        except OperationCancelledError:
            raise
        except ScraperError as exc:
            logger.warning("life-event crawl on %s failed: %s", self.site.name, exc)
            events = []
        return events or fallback_life_events(self.site)

    # ------------------------------------------------------------------
    # Single-document operations
    # ------------------------------------------------------------------
    def get_document(self, url: str, cancel: Optional[CancelToken] = None) -> Article:
        """Fetch one article or form page.

        Raises:
            OperationCancelledError: *cancel* fired.
            InvalidUrlError, DomainMismatchError: *url* rejected before fetching.
            NotFoundError, HttpError, FetchError: the fetch failed.
            NoContentError: the page has no usable content.
        """
        cancel = cancel or CancelToken()
        cancel.raise_if_cancelled()
        target = validate_url(url, self.site)
        return self._crawl(target, ARTICLE_RULES, cancel).resolve_document()

    def get_life_event_detail(
        self, url: str, cancel: Optional[CancelToken] = None
    ) -> LifeEventDetail:
        """Fetch one life-event content sheet split into titled sections.

        Raises:
            OperationCancelledError: *cancel* fired.
            InvalidUrlError, DomainMismatchError: *url* rejected before fetching.
            InvalidTargetError: *url* is not a content sheet (e.g. ``N19808``).
            NotFoundError, HttpError, FetchError: the fetch failed.
            NoContentError: the page has neither introduction nor sections.
        """
        cancel = cancel or CancelToken()
        cancel.raise_if_cancelled()
        target = validate_url(url, self.site)
        self._require_life_events()
        require_content_sheet(target, self.site)
        return self._crawl(target, LIFE_EVENT_DETAIL_RULES, cancel).resolve_document()
