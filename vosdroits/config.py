"""Centralised settings for the VosDroits server.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, None: 1.0}


def parse_duration(raw: str | None, default: float) -> float:
    """Parse ``"30"``, ``"2.5"``, ``"500ms"``, ``"30s"`` or ``"1m"`` into seconds.

    Anything unparsable yields *default*.
    """
    if not raw:
        return default
    match = _DURATION_RE.match(raw)
    if match is None:
        return default
    value, unit = match.groups()
    return float(value) * _DURATION_UNITS[unit]


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Server identity
    # ------------------------------------------------------------------
    server_name: str = field(
        default_factory=lambda: os.environ.get("SERVER_NAME", "vosdroits")
    )
    server_version: str = field(
        default_factory=lambda: os.environ.get("SERVER_VERSION", "v1.0.0")
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "info")
    )

    # ------------------------------------------------------------------
    # Scraper
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: parse_duration(os.environ.get("HTTP_TIMEOUT"), 30.0)
    )
    rate_limit_delay: float = field(
        default_factory=lambda: parse_duration(os.environ.get("RATE_LIMIT_DELAY"), 1.0)
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get("USER_AGENT", "VosDroits-MCP-Server/1.0")
    )

    # ------------------------------------------------------------------
    # HTTP API
    # ------------------------------------------------------------------
    api_host: str = field(
        default_factory=lambda: os.environ.get("API_HOST", "127.0.0.1")
    )
    api_port: int = field(
        default_factory=lambda: int(os.environ.get("HTTP_PORT") or "8000")
    )


# Module-level singleton, import this everywhere:
#   from vosdroits.config import settings
settings = Settings()
