"""Error taxonomy for the scraper.

Validation errors (:class:`InvalidUrlError`, :class:`DomainMismatchError`,
:class:`InvalidTargetError`) are raised before any network activity.  Fetch
and extraction errors (:class:`HttpError`, :class:`NotFoundError`,
:class:`FetchError`, :class:`NoContentError`) propagate from single-document
operations and are absorbed by the fallback for list operations.
:class:`OperationCancelledError` always propagates.
"""

from __future__ import annotations

from vosdroits.scraper.models import FetchStatus


class ScraperError(Exception):
    """Base class for every error the scraper raises on purpose."""

    kind = "scraper_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidUrlError(ScraperError):
    """Empty or unparsable URL."""

    kind = "url_invalid"


class DomainMismatchError(ScraperError):
    """URL host is outside the site's allow-list."""

    kind = "domain_mismatch"

    def __init__(self, host: str, allowed: tuple[str, ...]) -> None:
        super().__init__(
            f"URL must be from {' or '.join(allowed)} domain, got: {host}"
        )
        self.host = host


class InvalidTargetError(ScraperError):
    """URL identifier has the wrong shape for the requested operation."""

    kind = "invalid_target"


class HttpError(ScraperError):
    """The site answered with a 4xx/5xx status."""

    kind = "http_error"
    outcome = FetchStatus.HTTP_ERROR

    def __init__(self, status: int, url: str, message: str | None = None) -> None:
        super().__init__(message or f"HTTP {status} for {url}")
        self.status = status
        self.url = url


class NotFoundError(HttpError):
    kind = "not_found"
    outcome = FetchStatus.NOT_FOUND

    def __init__(self, url: str) -> None:
        super().__init__(404, url, f"page not found: {url}")


class FetchError(ScraperError):
    """Transport failure or timeout."""

    kind = "fetch_error"
    outcome = FetchStatus.TRANSPORT_FAILURE


class NoContentError(ScraperError):
    """The page was fetched but nothing usable could be extracted."""

    kind = "no_content"


class OperationCancelledError(ScraperError):
    kind = "cancelled"

    def __init__(self, message: str = "operation cancelled") -> None:
        super().__init__(message)
