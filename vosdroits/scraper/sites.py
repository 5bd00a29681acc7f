"""Site Profiles: one configuration bundle per target website.

A :class:`SiteProfile` carries everything the scraper needs to know about a
site: base URL, allowed hosts, politeness parameters, the CSS selectors its
pages use (:class:`ExtractionRules`) and the default records returned when a
list crawl comes back empty.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Pattern, Tuple
from urllib.parse import quote_plus

from vosdroits.config import settings
from vosdroits.scraper.models import Category, LifeEvent


@dataclass(frozen=True)
class ExtractionRules:
    """Selectors and filters for each page type of one site.

    Defaults follow the French government design system (DSFR) markup that
    both supported sites share.
    """

    # Search listing
    result_item: str = "div.fr-card"
    result_link: str = "a[href]"
    result_title: Tuple[str, ...] = ("h3.fr-card__title a", "h3.fr-card__title")
    result_description: str = "p.fr-card__desc"
    result_type: str = "div.fr-card__detail"
    result_date: str = "p.fr-card__detail"

    # Single document
    title_selector: str = "h1"
    title_separator: Optional[str] = None
    content_container: str = "main, article, div.main-content, div.content"
    intro_selector: str = "p.fr-text--lead, div.sp-intro"
    content_fragments: str = "h1, h2, h3, p, li, div.fr-callout, div.fr-card__desc"
    section_heading: str = "h2"
    section_fragments: str = "h2, h3, p, li, div.fr-callout"
    breadcrumb: str = "nav.fr-breadcrumb, div.fr-breadcrumb"
    min_fragment_length: int = 10
    boilerplate_markers: Tuple[str, ...] = ("javascript", "Cookie", "Navigation")

    # Category / navigation listing
    nav_links: str = "nav.fr-nav a.fr-nav__link"
    excluded_nav_names: Tuple[str, ...] = ("Accueil",)

    # Life-event listing
    life_event_links: str = "div.fr-grid-row a.fr-tile__link"


@dataclass(frozen=True)
class SiteProfile:
    id: str
    name: str
    base_url: str
    allowed_domains: Tuple[str, ...]
    search_path: str
    categories_path: str
    category_pattern: Pattern[str]
    category_description: str
    default_categories: Tuple[Category, ...]
    rules: ExtractionRules = field(default_factory=ExtractionRules)
    content_sheet_pattern: Optional[Pattern[str]] = None
    category_id_pattern: Optional[Pattern[str]] = None
    life_events_path: Optional[str] = None
    default_life_events: Tuple[LifeEvent, ...] = ()
    max_parallelism: int = 1
    request_delay: float = 1.0
    user_agent: str = "VosDroits-MCP-Server/1.0"

    def __post_init__(self) -> None:
        if self.max_parallelism < 1:
            raise ValueError(f"{self.id}: max_parallelism must be >= 1")
        if self.request_delay < 0:
            raise ValueError(f"{self.id}: request_delay must be >= 0")
        if not self.default_categories:
            raise ValueError(f"{self.id}: default_categories must not be empty")
        if self.life_events_path and not self.default_life_events:
            raise ValueError(f"{self.id}: default_life_events must not be empty")

    @property
    def allowed_hosts(self) -> frozenset[str]:
        """Every accepted host: each allowed domain bare and ``www.``-prefixed."""
        hosts = set()
        for domain in self.allowed_domains:
            bare = domain.lower().removeprefix("www.")
            hosts.add(bare)
            hosts.add(f"www.{bare}")
        return frozenset(hosts)

    @property
    def publishes_life_events(self) -> bool:
        return self.life_events_path is not None

    def url_for(self, path: str) -> str:
        return self.base_url.rstrip("/") + path

    def search_url(self, query: str) -> str:
        return self.url_for(self.search_path.format(query=quote_plus(query)))

    def describe_category(self, name: str) -> str:
        return self.category_description.format(name=name, lower=name.lower())


# ---------------------------------------------------------------------------
# Known sites
# ---------------------------------------------------------------------------

_SP_BASE = "https://www.service-public.gouv.fr"
_IMPOTS_BASE = "https://www.impots.gouv.fr"

SERVICE_PUBLIC = SiteProfile(
    id="service-public",
    name="service-public.gouv.fr",
    base_url=_SP_BASE,
    allowed_domains=("service-public.gouv.fr",),
    search_path="/particuliers/recherche?keyword={query}",
    categories_path="/particuliers",
    category_pattern=re.compile(
        r"^/(?:particuliers|professionnels|associations)/vosdroits/N\d+/?$"
    ),
    category_description="Information and procedures: {name}",
    default_categories=(
        Category(
            name="Particuliers",
            description="Information and procedures for individuals",
            url=f"{_SP_BASE}/particuliers",
        ),
        Category(
            name="Professionnels",
            description="Information and procedures for professionals",
            url=f"{_SP_BASE}/professionnels",
        ),
        Category(
            name="Associations",
            description="Information and procedures for associations",
            url=f"{_SP_BASE}/associations",
        ),
    ),
    content_sheet_pattern=re.compile(r"^F\d+$"),
    category_id_pattern=re.compile(r"^N\d+$"),
    life_events_path="/particuliers/vosdroits/N19808",
    default_life_events=(
        LifeEvent("J'attends un enfant", f"{_SP_BASE}/particuliers/vosdroits/F16225"),
        LifeEvent("Je déménage", f"{_SP_BASE}/particuliers/vosdroits/F17163"),
        LifeEvent("Un proche est décédé", f"{_SP_BASE}/particuliers/vosdroits/F16507"),
        LifeEvent("Je me marie", f"{_SP_BASE}/particuliers/vosdroits/F35467"),
        LifeEvent("Je prépare ma retraite", f"{_SP_BASE}/particuliers/vosdroits/F35581"),
        LifeEvent("Je cherche un emploi", f"{_SP_BASE}/particuliers/vosdroits/F35575"),
    ),
    request_delay=settings.rate_limit_delay,
    user_agent=settings.user_agent,
)

IMPOTS = SiteProfile(
    id="impots",
    name="impots.gouv.fr",
    base_url=_IMPOTS_BASE,
    allowed_domains=("impots.gouv.fr",),
    search_path="/recherche/{query}?origin[]=impots&search_filter=Filtrer",
    categories_path="/particulier",
    category_pattern=re.compile(r"^/[a-z][a-z0-9-]*/?$"),
    category_description="Information fiscale pour {lower}",
    default_categories=(
        Category(
            name="Particulier",
            description="Information fiscale pour les particuliers",
            url=f"{_IMPOTS_BASE}/particulier",
        ),
        Category(
            name="Professionnel",
            description="Information fiscale pour les professionnels",
            url=f"{_IMPOTS_BASE}/professionnel",
        ),
        Category(
            name="Partenaire",
            description="Information pour les partenaires",
            url=f"{_IMPOTS_BASE}/partenaire",
        ),
        Category(
            name="Collectivité",
            description="Information pour les collectivités",
            url=f"{_IMPOTS_BASE}/collectivite",
        ),
        Category(
            name="International",
            description="Information fiscale internationale",
            url=f"{_IMPOTS_BASE}/international",
        ),
    ),
    rules=ExtractionRules(title_selector="head title", title_separator=" | "),
    request_delay=settings.rate_limit_delay,
    user_agent=settings.user_agent,
)

SITES: Dict[str, SiteProfile] = {site.id: site for site in (SERVICE_PUBLIC, IMPOTS)}


def get_site(site_id: str) -> SiteProfile:
    """Return the profile registered under *site_id*.

    Raises:
        KeyError: If no such site exists.
    """
    try:
        return SITES[site_id]
    except KeyError:
        raise KeyError(
            f"unknown site {site_id!r}; expected one of: {', '.join(SITES)}"
        ) from None
