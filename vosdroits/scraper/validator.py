"""Domain validation: every URL the scraper visits must belong to its site."""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit

from vosdroits.scraper.errors import (
    DomainMismatchError,
    InvalidTargetError,
    InvalidUrlError,
)
from vosdroits.scraper.sites import SiteProfile


def _split(url: str):
    try:
        return urlsplit(url)
    except ValueError as exc:
        raise InvalidUrlError(f"invalid URL: {exc}") from exc


def validate_url(url: str, site: SiteProfile) -> str:
    """Return the canonical absolute form of *url* for *site*.

    A URL without a host is treated as a path relative to the site's base
    URL.  The host is compared case-insensitively against the site's allowed
    domains, with or without a leading ``www.``.

    Raises:
        InvalidUrlError: *url* is empty or cannot be parsed.
        DomainMismatchError: the host is not one of the site's hosts.
    """
    url = (url or "").strip()
    if not url:
        raise InvalidUrlError("URL cannot be empty")
    if any(ch.isspace() for ch in url):
        raise InvalidUrlError(f"invalid URL: {url!r}")

    parts = _split(url)
    if not parts.netloc:
        if parts.scheme:
            raise InvalidUrlError(f"invalid URL: {url!r}")
        if not url.startswith("/"):
            raise InvalidUrlError(f"invalid URL: {url!r} is neither absolute nor a site path")
        url = site.base_url.rstrip("/") + url
        parts = _split(url)
        if not parts.netloc:
            raise InvalidUrlError(f"invalid URL after making absolute: {url!r}")

    if parts.scheme not in ("http", "https"):
        raise InvalidUrlError(f"unsupported URL scheme: {parts.scheme!r}")

    host = (parts.hostname or "").lower()
    if not host:
        raise InvalidUrlError(f"invalid URL: {url!r}")
    if host not in site.allowed_hosts:
        raise DomainMismatchError(parts.netloc, site.allowed_domains)

    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, parts.fragment)
    )


def page_identifier(url: str) -> str:
    """Return the last non-empty path segment of *url* (``F16225``, ``N19808``)."""
    segments = [s for s in urlsplit(url).path.split("/") if s]
    return segments[-1] if segments else ""


def require_content_sheet(url: str, site: SiteProfile) -> str:
    """Check that *url* names a content sheet rather than a category page.

    Raises:
        InvalidTargetError: the identifier is a category id or has no
            recognisable content-sheet shape.
    """
    if site.content_sheet_pattern is None:
        raise InvalidTargetError(f"{site.name} has no content-sheet pages")

    identifier = page_identifier(url)
    if site.category_id_pattern is not None and site.category_id_pattern.match(identifier):
        raise InvalidTargetError(
            f"{identifier} is a category page, not a content sheet: {url}"
        )
    if not site.content_sheet_pattern.match(identifier):
        raise InvalidTargetError(
            f"URL does not point to a content sheet (expected an identifier like F12345): {url}"
        )
    return identifier
