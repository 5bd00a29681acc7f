"""Content extraction: turns a :class:`RawPage` into typed records.

Extraction is a synchronous visitor.  Each page type has an ordered tuple of
rules; a rule takes the parsed :class:`Document` and the
:class:`~vosdroits.scraper.sites.SiteProfile` and yields zero or more
records.  :func:`extract` feeds them into a per-call
:class:`ExtractionSession`, which owns the accumulated records and the
first error, and applies the result policy in :meth:`ExtractionSession.resolve`
(lists) or :meth:`ExtractionSession.resolve_document` (single documents).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Set
from urllib.parse import urljoin, urlsplit

import trafilatura
from bs4 import BeautifulSoup, Tag

from vosdroits.scraper.cancellation import CancelToken
from vosdroits.scraper.errors import (
    NoContentError,
    OperationCancelledError,
    ScraperError,
)
from vosdroits.scraper.models import (
    Article,
    Category,
    LifeEvent,
    LifeEventDetail,
    LifeEventSection,
    RawPage,
    SearchResult,
)
from vosdroits.scraper.sites import ExtractionRules, SiteProfile

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def clamp_limit(limit: Optional[int]) -> int:
    """Return *limit* if it lies in ``[1, 100]``, else the default of 10."""
    if limit is None or limit <= 0 or limit > MAX_LIMIT:
        return DEFAULT_LIMIT
    return limit


# ---------------------------------------------------------------------------
# Parsed document & per-call session
# ---------------------------------------------------------------------------

@dataclass
class Document:
    """A parsed page plus the location its relative links resolve against."""

    soup: BeautifulSoup
    url: str
    base_url: str
    html: str = ""

    @classmethod
    def parse(cls, page: RawPage) -> "Document":
        return cls(
            soup=BeautifulSoup(page.html, "html.parser"),
            url=page.url,
            base_url=page.final_url,
            html=page.html,
        )

    def absolute(self, href: str) -> str:
        return urljoin(self.base_url, href)


@dataclass
class ExtractionSession:
    """Accumulators private to one operation call."""

    url: str
    cancel: CancelToken = field(default_factory=CancelToken)
    limit: Optional[int] = None
    records: List[Any] = field(default_factory=list)
    error: Optional[ScraperError] = None

    def add(self, record: Any) -> None:
        self.records.append(record)

    def fail(self, error: ScraperError) -> None:
        """Record *error*; only the first one is kept."""
        if self.error is None:
            self.error = error

    def resolve(self) -> List[Any]:
        """Apply the list result policy.

        No error: the records, possibly none.  Error and no records: the
        error is raised.  Error and some records: the partial records are
        returned and the error is only logged.
        """
        if self.error is not None:
            if not self.records:
                raise self.error
            logger.warning(
                "returning %d partial record(s) from %s, suppressed error: %s",
                len(self.records), self.url, self.error,
            )
        return list(self.records)

    def resolve_document(self) -> Any:
        """Apply the single-document result policy.

        Raises:
            ScraperError: the recorded error when nothing was extracted.
            NoContentError: the record has no usable content.
        """
        if self.error is not None and not self.records:
            raise self.error
        record = self.records[0] if self.records else None
        if record is None or not _has_content(record):
            raise NoContentError(f"no content found at URL: {self.url}")
        return record


def _has_content(record: Any) -> bool:
    if isinstance(record, LifeEventDetail):
        return bool(record.title and (record.introduction or record.sections))
    return bool(record.title and getattr(record, "content", ""))


Rule = Callable[[Document, SiteProfile], Iterable[Any]]


def extract(
    page: RawPage,
    site: SiteProfile,
    rules: Sequence[Rule],
    session: ExtractionSession,
) -> None:
    """Run *rules* over *page* in order, collecting records into *session*.

    Collection stops once the session limit is reached.  A rule raising a
    :class:`ScraperError` is recorded and the next rule still runs.  If the
    session is cancelled, whatever was collected is discarded.

    Raises:
        OperationCancelledError: *session.cancel* fired during extraction.
    """
    session.cancel.raise_if_cancelled()
    doc = Document.parse(page)
    collected: List[Any] = []

    def _room() -> bool:
        return session.limit is None or len(session.records) + len(collected) < session.limit

    for rule in rules:
        if not _room():
            break
        try:
            for record in rule(doc, site):
                collected.append(record)
                if not _room():
                    break
        except OperationCancelledError:
            raise
        except ScraperError as exc:
            session.fail(exc)
    session.cancel.raise_if_cancelled()
    for record in collected:
        session.add(record)


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def _text(el: Optional[Tag]) -> str:
    if el is None:
        return ""
    return " ".join(el.get_text(" ", strip=True).split())


def _child_text(el: Tag, selector: str) -> str:
    return _text(el.select_one(selector))


def _first_text(root: Tag, selectors: Iterable[str]) -> str:
    """Text of the first node matching one of *selectors*, tried in order."""
    for selector in selectors:
        for node in root.select(selector):
            text = _text(node)
            if text:
                return text
    return ""


def keep_fragment(text: str, rules: ExtractionRules) -> bool:
    """Return ``True`` if *text* is long enough and free of boilerplate."""
    if len(text) <= rules.min_fragment_length:
        return False
    return not any(marker in text for marker in rules.boilerplate_markers)


def _nested_in(el: Tag, taken: Set[int]) -> bool:
    return any(id(parent) in taken for parent in el.parents)


def _collect_fragments(
    container: Tag,
    selector: str,
    rules: ExtractionRules,
    taken: Set[int],
) -> List[str]:
    """Filtered text fragments under *container*, in document order.

    A node inside an already accepted node (or inside one of *taken*) is
    skipped so its text is not repeated.
    """
    parts: List[str] = []
    for el in container.select(selector):
        if id(el) in taken or _nested_in(el, taken):
            continue
        text = _text(el)
        if keep_fragment(text, rules):
            parts.append(text)
            taken.add(id(el))
    return parts


def _containers(doc: Document, rules: ExtractionRules) -> List[Tag]:
    found = doc.soup.select(rules.content_container)
    if found:
        return found
    return [doc.soup.body or doc.soup]


def _intro(container: Tag, rules: ExtractionRules) -> Optional[Tag]:
    for node in container.select(rules.intro_selector):
        if keep_fragment(_text(node), rules):
            return node
    return None


# ---------------------------------------------------------------------------
# Search listing
# ---------------------------------------------------------------------------

def search_results(doc: Document, site: SiteProfile) -> Iterator[SearchResult]:
    rules = site.rules
    for card in doc.soup.select(rules.result_item):
        link = card.select_one(rules.result_link)
        href = (link.get("href") or "").strip() if link is not None else ""
        if not href:
            continue
        title = _first_text(card, rules.result_title)
        if not title:
            continue
        yield SearchResult(
            title=title,
            url=doc.absolute(href),
            description=_child_text(card, rules.result_description),
            type=_child_text(card, rules.result_type) or None,
            date=_child_text(card, rules.result_date) or None,
        )


# ---------------------------------------------------------------------------
# Single document
# ---------------------------------------------------------------------------

def document_title(doc: Document, site: SiteProfile) -> str:
    """Title from the site's title node, or a placeholder naming the site."""
    rules = site.rules
    for node in doc.soup.select(rules.title_selector):
        title = _text(node)
        if rules.title_separator:
            title = title.split(rules.title_separator)[0].strip()
        if title:
            return title
    return f"Article from {site.name}"


def document_type(doc: Document, site: SiteProfile) -> Optional[str]:
    breadcrumb = doc.soup.select_one(site.rules.breadcrumb)
    if breadcrumb is None:
        return None
    text = _text(breadcrumb)
    if "Formulaire" in text:
        return "Formulaire"
    if "Question" in text:
        return "Question-Réponse"
    return "Article"


def document_description(doc: Document) -> Optional[str]:
    metadata = trafilatura.extract_metadata(doc.html, default_url=doc.base_url)
    description = getattr(metadata, "description", None) if metadata else None
    if not description:
        meta = doc.soup.select_one("meta[name='description'], meta[property='og:description']")
        description = (meta.get("content") or "").strip() if meta is not None else ""
    return description or None


def document_body(doc: Document, rules: ExtractionRules) -> str:
    """Introduction block first, then headings, paragraphs and callouts.

    The first content container yielding any text wins.
    """
    for container in _containers(doc, rules):
        taken: Set[int] = set()
        parts: List[str] = []
        intro = _intro(container, rules)
        if intro is not None:
            parts.append(_text(intro))
            taken.add(id(intro))
        parts.extend(_collect_fragments(container, rules.content_fragments, rules, taken))
        if parts:
            return "\n\n".join(parts)
    return ""


def article(doc: Document, site: SiteProfile) -> Iterator[Article]:
    yield Article(
        title=document_title(doc, site),
        content=document_body(doc, site.rules),
        url=doc.url,
        type=document_type(doc, site),
        description=document_description(doc),
    )


def life_event_detail(doc: Document, site: SiteProfile) -> Iterator[LifeEventDetail]:
    """Split the page into an introduction and ``h2``-titled sections.

    Fragments before the first section heading belong to the introduction.
    A section survives only if both its title and its content are non-empty.
    """
    rules = site.rules
    container = _containers(doc, rules)[0]
    taken: Set[int] = set()
    intro_parts: List[str] = []
    intro = _intro(container, rules)
    if intro is not None:
        intro_parts.append(_text(intro))
        taken.add(id(intro))

    sections: List[LifeEventSection] = []
    heading: Optional[str] = None
    body: List[str] = []

    def _close() -> None:
        if heading and body:
            sections.append(LifeEventSection(title=heading, content="\n\n".join(body)))

    for el in container.select(rules.section_fragments):
        if id(el) in taken or _nested_in(el, taken):
            continue
        if el.name == rules.section_heading:
            _close()
            heading, body = _text(el), []
            taken.add(id(el))
            continue
        text = _text(el)
        if not keep_fragment(text, rules):
            continue
        taken.add(id(el))
        if heading is None:
            intro_parts.append(text)
        else:
            body.append(text)
    _close()

    yield LifeEventDetail(
        title=document_title(doc, site),
        url=doc.url,
        introduction="\n\n".join(intro_parts),
        sections=sections,
    )


# ---------------------------------------------------------------------------
# Category / navigation listing
# ---------------------------------------------------------------------------

def navigation_categories(doc: Document, site: SiteProfile) -> Iterator[Category]:
    """Top-level category links of the navigation bar, deduplicated by name."""
    rules = site.rules
    seen: Set[str] = set()
    for link in doc.soup.select(rules.nav_links):
        name = _text(link)
        href = (link.get("href") or "").strip()
        if not name or not href or name in rules.excluded_nav_names or name in seen:
            continue
        url = doc.absolute(href)
        parts = urlsplit(url)
        if (parts.hostname or "").lower() not in site.allowed_hosts:
            continue
        if not site.category_pattern.match(parts.path):
            continue
        seen.add(name)
        yield Category(name=name, description=site.describe_category(name), url=url)


# ---------------------------------------------------------------------------
# Life-event listing
# ---------------------------------------------------------------------------

def life_events(doc: Document, site: SiteProfile) -> Iterator[LifeEvent]:
    seen: Set[str] = set()
    for link in doc.soup.select(site.rules.life_event_links):
        title = _text(link)
        href = (link.get("href") or "").strip()
        if not title or not href or title in seen:
            continue
        seen.add(title)
        yield LifeEvent(title=title, url=doc.absolute(href))


SEARCH_RULES: Sequence[Rule] = (search_results,)
ARTICLE_RULES: Sequence[Rule] = (article,)
LIFE_EVENT_DETAIL_RULES: Sequence[Rule] = (life_event_detail,)
CATEGORY_RULES: Sequence[Rule] = (navigation_categories,)
LIFE_EVENT_RULES: Sequence[Rule] = (life_events,)
