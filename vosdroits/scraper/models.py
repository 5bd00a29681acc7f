"""Data models for the scraper pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional


class FetchStatus(enum.Enum):
    """Terminal outcome class of a single fetch."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    HTTP_ERROR = "http_error"
    TRANSPORT_FAILURE = "transport_failure"

    @classmethod
    def from_status_code(cls, status_code: int) -> "FetchStatus":
        if status_code == 404:
            return cls.NOT_FOUND
        if status_code >= 400:
            return cls.HTTP_ERROR
        return cls.SUCCESS


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch.

    ``final_url`` is the location after redirects; relative links found in
    ``html`` resolve against it.
    """

    url: str
    html: str
    status_code: int
    final_url: str = ""

    def __post_init__(self) -> None:
        if not self.final_url:
            self.final_url = self.url

    @property
    def status(self) -> FetchStatus:
        return FetchStatus.from_status_code(self.status_code)


# ---------------------------------------------------------------------------
# Extracted records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SearchResult:
    title: str
    url: str
    description: str = ""
    type: Optional[str] = None
    date: Optional[str] = None


@dataclass(frozen=True)
class Article:
    title: str
    content: str
    url: str
    type: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class Category:
    name: str
    description: str
    url: Optional[str] = None


@dataclass(frozen=True)
class LifeEvent:
    title: str
    url: str


@dataclass(frozen=True)
class LifeEventSection:
    title: str
    content: str


@dataclass(frozen=True)
class LifeEventDetail:
    title: str
    url: str
    introduction: str = ""
    sections: List[LifeEventSection] = field(default_factory=list)
