"""Per-command run context for the VosDroits CLI.

Each scraping command runs inside :func:`interruptible`, which hands it a
:class:`CancelToken` and wires Ctrl-C (SIGINT) to that token, so an
interrupted crawl aborts its in-flight request instead of waiting for the
HTTP timeout.
"""

from __future__ import annotations

import signal
import threading
from contextlib import contextmanager
from functools import wraps
from typing import Callable, Iterator

import typer

from vosdroits.scraper import CancelToken, ScraperError

EXIT_ERROR = 1
EXIT_CANCELLED = 130


@contextmanager
def interruptible() -> Iterator[CancelToken]:
    """Yield a token cancelled by SIGINT for the duration of the block.

    Signal handlers can only be installed from the main thread; elsewhere
    (e.g. under a test runner thread) the token is simply never signalled.
    """
    token = CancelToken()
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _on_sigint(signum, frame):  # noqa: ARG001
        token.cancel()

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


def report_errors(func: Callable) -> Callable:
    """Decorator turning :class:`ScraperError` into a message and exit code."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ScraperError as exc:
            typer.echo(f"error: {exc.kind}: {exc.message}", err=True)
            code = EXIT_CANCELLED if exc.kind == "cancelled" else EXIT_ERROR
            raise typer.Exit(code=code) from exc

    return wrapper
