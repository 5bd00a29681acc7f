"""Plain-text rendering of scraper records for the CLI."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from typing import Any, List

from vosdroits.scraper import (
    Article,
    Category,
    LifeEvent,
    LifeEventDetail,
    SearchResult,
)


def to_json(payload: Any) -> str:
    """Serialise a record or a list of records as indented JSON."""
    if isinstance(payload, list):
        data = [asdict(item) for item in payload]
    elif is_dataclass(payload):
        data = asdict(payload)
    else:
        data = payload
    return json.dumps(data, ensure_ascii=False, indent=2)


def render_search_results(results: List[SearchResult]) -> str:
    lines = []
    for i, r in enumerate(results, start=1):
        badge = f" [{r.type}]" if r.type else ""
        lines.append(f"{i:>3}. {r.title}{badge}")
        lines.append(f"     {r.url}")
        if r.description:
            lines.append(f"     {r.description}")
    return "\n".join(lines)


def render_article(article: Article) -> str:
    header = [article.title, "=" * len(article.title), article.url]
    if article.type:
        header.append(f"Type: {article.type}")
    if article.description:
        header.append(article.description)
    return "\n".join(header) + "\n\n" + article.content


def render_categories(categories: List[Category]) -> str:
    lines = []
    for c in categories:
        lines.append(f" - {c.name}: {c.description}")
        if c.url:
            lines.append(f"   {c.url}")
    return "\n".join(lines)


def render_life_events(events: List[LifeEvent]) -> str:
    return "\n".join(f" - {e.title}  {e.url}" for e in events)


def render_life_event_detail(detail: LifeEventDetail) -> str:
    parts = [detail.title, "=" * len(detail.title), detail.url]
    if detail.introduction:
        parts.append("")
        parts.append(detail.introduction)
    for section in detail.sections:
        parts.append("")
        parts.append(f"## {section.title}")
        parts.append(section.content)
    return "\n".join(parts)
