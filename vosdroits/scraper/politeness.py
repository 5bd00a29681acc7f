"""Per-site request serialisation.

Each :class:`SiteProfile` gets one :class:`PolitenessLimiter`, shared by
every client that talks to that site.  The limiter admits at most
``max_parallelism`` requests at a time and keeps a fixed minimum delay
between the end of one request and the start of the next, however long the
request took.  It only orders requests; it never drops one.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator

from vosdroits.scraper.cancellation import CancelToken
from vosdroits.scraper.sites import SiteProfile


class PolitenessLimiter:
    def __init__(self, max_parallelism: int = 1, delay: float = 1.0) -> None:
        if max_parallelism < 1:
            raise ValueError("max_parallelism must be >= 1")
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._slots = threading.BoundedSemaphore(max_parallelism)
        self._lock = threading.Lock()
        self._delay = delay
        self._next_allowed = 0.0

    @property
    def delay(self) -> float:
        return self._delay

    def _remaining_delay(self) -> float:
        """Seconds left until the delay after the last finished request runs out."""
        with self._lock:
            return self._next_allowed - time.monotonic()

    def _finished(self) -> None:
        with self._lock:
            self._next_allowed = time.monotonic() + self._delay

    @contextmanager
    def slot(self, cancel: CancelToken) -> Iterator[None]:
        """Hold a request slot for the duration of the block.

        Waiting (for a slot or for the delay) is interrupted by *cancel*.

        Raises:
            OperationCancelledError: cancelled while queued.
        """
        while not self._slots.acquire(timeout=0.05):
            cancel.raise_if_cancelled()
        issued = False
        try:
            cancel.raise_if_cancelled()
            wait = self._remaining_delay()
            if wait > 0 and cancel.wait(wait):
                cancel.raise_if_cancelled()
            issued = True
            yield
        finally:
            if issued:
                self._finished()
            self._slots.release()


_registry: Dict[SiteProfile, PolitenessLimiter] = {}
_registry_lock = threading.Lock()


def limiter_for(site: SiteProfile) -> PolitenessLimiter:
    """Return the limiter shared by every request to *site*."""
    with _registry_lock:
        limiter = _registry.get(site)
        if limiter is None:
            limiter = PolitenessLimiter(site.max_parallelism, site.request_delay)
            _registry[site] = limiter
        return limiter
