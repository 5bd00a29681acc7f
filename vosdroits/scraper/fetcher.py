"""Politeness-constrained HTTP fetcher.

One call issues exactly one GET (redirects followed, never retried).  The
request waits for its site's :class:`~vosdroits.scraper.politeness.PolitenessLimiter`
slot, honours a :class:`~vosdroits.scraper.cancellation.CancelToken` and an
overall deadline, and turns every failure into a
:class:`~vosdroits.scraper.errors.ScraperError`.

The sync httpx client cannot interrupt a blocked read, so the GET runs on a
worker thread and the caller waits on it in short slices.  A cancel or an
expired deadline returns control at once; the abandoned worker finishes on
its own and its result is dropped.
"""

from __future__ import annotations

import logging
import time
from concurrent import futures
from typing import Optional

import httpx

from vosdroits.config import settings
from vosdroits.scraper.cancellation import CancelToken
from vosdroits.scraper.errors import (
    DomainMismatchError,
    FetchError,
    HttpError,
    NotFoundError,
    OperationCancelledError,
)
from vosdroits.scraper.models import FetchStatus, RawPage
from vosdroits.scraper.politeness import limiter_for
from vosdroits.scraper.sites import SiteProfile

logger = logging.getLogger(__name__)

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
_POLL_INTERVAL = 0.05

_workers = futures.ThreadPoolExecutor(thread_name_prefix="vosdroits-fetch")


def _host_guard(site: SiteProfile):
    """Build an httpx request hook refusing hosts outside *site*'s allow-list.

    Redirects are followed, so the check has to run on every hop.
    """

    def _check(request: httpx.Request) -> None:
        host = (request.url.host or "").lower()
        if host not in site.allowed_hosts:
            raise DomainMismatchError(host, site.allowed_domains)

    return _check


def _raise_for_status(status_code: int, url: str) -> None:
    status = FetchStatus.from_status_code(status_code)
    if status is FetchStatus.NOT_FOUND:
        raise NotFoundError(url)
    if status is FetchStatus.HTTP_ERROR:
        raise HttpError(status_code, url)


def _timed_out(url: str, timeout: float) -> FetchError:
    return FetchError(f"timed out after {timeout:g}s fetching {url}")


def _download(
    client: httpx.Client,
    url: str,
    cancel: CancelToken,
    deadline: float,
    timeout: float,
) -> RawPage:
    """Worker body: GET *url* and read the whole response."""
    logger.debug("GET %s", url)
    with client.stream("GET", url) as response:
        final_url = str(response.url)
        _raise_for_status(response.status_code, final_url)
        chunks = []
        for chunk in response.iter_bytes():
            cancel.raise_if_cancelled()
            if time.monotonic() > deadline:
                raise _timed_out(url, timeout)
            chunks.append(chunk)
        encoding = response.charset_encoding or "utf-8"
        status_code = response.status_code

    body = b"".join(chunks)
    try:
        html = body.decode(encoding, errors="replace")
    except LookupError:
        html = body.decode("utf-8", errors="replace")
    return RawPage(url=url, html=html, status_code=status_code, final_url=final_url)


def _await(
    pending: futures.Future,
    cancel: CancelToken,
    deadline: float,
    url: str,
    timeout: float,
) -> RawPage:
    """Wait for *pending*, giving up as soon as *cancel* fires or *deadline* passes."""
    while True:
        done, _ = futures.wait([pending], timeout=_POLL_INTERVAL)
        if done:
            return pending.result()
        if cancel.cancelled:
            logger.info("abandoning in-flight fetch of %s", url)
            raise OperationCancelledError()
        if time.monotonic() > deadline:
            logger.warning("timeout fetching %s", url)
            raise _timed_out(url, timeout)


def fetch_url(
    url: str,
    site: SiteProfile,
    *,
    timeout: Optional[float] = None,
    cancel: Optional[CancelToken] = None,
) -> RawPage:
    """Fetch *url* from *site* and return a :class:`RawPage`.

    Args:
        url: Absolute URL, already validated against *site*.
        site: Profile whose limiter serialises the request.
        timeout: Overall deadline in seconds (``settings.request_timeout``
            when omitted).
        cancel: Cancellation signal; checked before dispatch, while queued
            and while the response is awaited.  Cancelling abandons the
            request immediately.

    Raises:
        OperationCancelledError: *cancel* fired before or during the fetch.
        NotFoundError: the server answered 404.
        HttpError: any other 4xx/5xx answer.
        FetchError: transport failure or deadline exceeded.
    """
    cancel = cancel or CancelToken()
    timeout = settings.request_timeout if timeout is None else timeout
    cancel.raise_if_cancelled()

    with limiter_for(site).slot(cancel):
        deadline = time.monotonic() + timeout
        client = httpx.Client(
            headers={"User-Agent": site.user_agent, "Accept": _ACCEPT},
            timeout=timeout,
            follow_redirects=True,
            event_hooks={"request": [_host_guard(site)]},
        )
        try:
            with cancel.watch(client.close):
                pending = _workers.submit(_download, client, url, cancel, deadline, timeout)
                page = _await(pending, cancel, deadline, url, timeout)
        except httpx.TimeoutException as exc:
            if cancel.cancelled:
                raise OperationCancelledError() from exc
            logger.warning("timeout fetching %s", url)
            raise _timed_out(url, timeout) from exc
        except httpx.HTTPError as exc:
            if cancel.cancelled:
                raise OperationCancelledError() from exc
            logger.warning("transport error fetching %s: %s", url, exc)
            raise FetchError(f"failed to fetch {url}: {exc}") from exc
        except RuntimeError as exc:
            # httpx refuses to use a client closed by the cancel callback
            if cancel.cancelled:
                raise OperationCancelledError() from exc
            raise
        except HttpError as exc:
            logger.warning("%s", exc)
            raise
        finally:
            client.close()

    cancel.raise_if_cancelled()
    return page
