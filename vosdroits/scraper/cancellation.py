"""Cooperative cancellation shared between a caller and an in-flight crawl."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List

from vosdroits.scraper.errors import OperationCancelledError

logger = logging.getLogger(__name__)


class CancelToken:
    """A one-shot cancellation signal.

    ``cancel()`` may be called from any thread (or a signal handler).
    Callbacks registered through :meth:`watch` run once, in the cancelling
    thread, which is how an in-flight fetch gets its transport closed.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        logger.info("cancellation requested")
        for callback in callbacks:
            try:
                callback()
            except Exception:  # noqa: BLE001
                logger.debug("cancel callback %r failed", callback, exc_info=True)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError()

    def wait(self, timeout: float) -> bool:
        """Sleep up to *timeout* seconds; return ``True`` if cancelled meanwhile."""
        return self._event.wait(timeout)

    @contextmanager
    def watch(self, callback: Callable[[], None]) -> Iterator[None]:
        """Run *callback* if the token is cancelled while the block executes.

        If the token is already cancelled the callback runs immediately.
        """
        with self._lock:
            already = self._event.is_set()
            if not already:
                self._callbacks.append(callback)
        if already:
            callback()
        try:
            yield
        finally:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

