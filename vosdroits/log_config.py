"""Process-wide logging setup, called once by each entry point."""

from __future__ import annotations

import logging
import sys

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def resolve_level(name: str | None) -> int:
    """Map a level name to a ``logging`` constant; unknown names give INFO."""
    return _LEVELS.get((name or "").strip().lower(), logging.INFO)


def configure_logging(level: str | None = None) -> None:
    """Send log records to stderr at *level*.

    Idempotent: a second call only adjusts the level of the handler
    installed by the first one.
    """
    root = logging.getLogger()
    root.setLevel(resolve_level(level))
    for handler in root.handlers:
        if getattr(handler, "_vosdroits", False):
            return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._vosdroits = True  # type: ignore[attr-defined]
    root.addHandler(handler)
