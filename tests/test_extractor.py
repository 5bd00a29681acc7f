"""Tests for the extraction pipeline.

Pages are small hand-written HTML snippets using the DSFR markup both sites
share; no network access.  ``trafilatura.extract_metadata`` is patched
where a test asserts on the description.
"""

from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest

from vosdroits.scraper import extractor
from vosdroits.scraper.cancellation import CancelToken
from vosdroits.scraper.errors import (
    FetchError,
    NoContentError,
    OperationCancelledError,
    ScraperError,
)
from vosdroits.scraper.extractor import (
    ARTICLE_RULES,
    CATEGORY_RULES,
    LIFE_EVENT_DETAIL_RULES,
    LIFE_EVENT_RULES,
    SEARCH_RULES,
    ExtractionSession,
    clamp_limit,
    extract,
    keep_fragment,
)
from vosdroits.scraper.models import Article, LifeEventDetail, RawPage, SearchResult
from vosdroits.scraper.sites import IMPOTS, SERVICE_PUBLIC, ExtractionRules

SP_BASE = "https://www.service-public.gouv.fr"


def _page(html: str, url: str = f"{SP_BASE}/particuliers/vosdroits/F1234") -> RawPage:
    return RawPage(url=url, html=html, status_code=200)


def _run(html, rules, site=SERVICE_PUBLIC, limit=None, url=None):
    page = _page(html, url) if url else _page(html)
    session = ExtractionSession(url=page.url, limit=limit)
    extract(page, site, rules, session)
    return session


SEARCH_HTML = """
<html><body><main>
  <div class="fr-card">
    <h3 class="fr-card__title"><a href="/particuliers/vosdroits/F1342">Passeport</a></h3>
    <p class="fr-card__desc">Demande de passeport biométrique</p>
    <div class="fr-card__detail">Fiche pratique</div>
    <p class="fr-card__detail">Vérifié le 01 janvier 2024</p>
  </div>
  <div class="fr-card">
    <h3 class="fr-card__title"><a href="/particuliers/vosdroits/F21089"></a>Carte d'identité</h3>
  </div>
  <div class="fr-card">
    <h3 class="fr-card__title">Carte sans lien</h3>
  </div>
  <div class="fr-card">
    <a href="/particuliers/vosdroits/F0000"></a>
  </div>
  <div class="fr-card">
    <h3 class="fr-card__title"><a href="https://www.service-public.gouv.fr/particuliers/vosdroits/R1976">Formulaire Cerfa</a></h3>
  </div>
</main></body></html>
"""

ARTICLE_HTML = """
<html><head>
  <title>Certificat d'immatriculation | Service Public</title>
  <meta name="description" content="Toutes les démarches pour la carte grise">
</head><body>
  <nav class="fr-breadcrumb"><a>Accueil</a> <a>Formulaire</a></nav>
  <main>
    <h1>Certificat d'immatriculation</h1>
    <p class="fr-text--lead">Le certificat d'immatriculation est obligatoire.</p>
    <h2>Comment faire la demande</h2>
    <p>La demande se fait en ligne sur le site de l'ANTS.</p>
    <p>Court</p>
    <p>Activez javascript pour continuer la lecture.</p>
    <div class="fr-callout"><p>Attention aux sites frauduleux payants.</p></div>
    <ul><li>Pièce d'identité en cours de validité</li></ul>
  </main>
</body></html>
"""

LIFE_EVENT_HTML = """
<html><body><main>
  <h1>J'attends un enfant</h1>
  <p class="fr-text--lead">Vous attendez un enfant, voici les démarches.</p>
  <p>Premier paragraphe avant les sections.</p>
  <h2>Avant la naissance</h2>
  <p>Déclarer la grossesse à la caisse d'allocations familiales.</p>
  <ul><li>Examens prénataux obligatoires</li></ul>
  <h2>Section vide</h2>
  <h2>Après la naissance</h2>
  <p>Déclarer la naissance à la mairie sous cinq jours.</p>
</main></body></html>
"""

NAV_HTML = """
<html><body>
<nav class="fr-nav">
  <a class="fr-nav__link" href="/">Accueil</a>
  <a class="fr-nav__link" href="/particuliers/vosdroits/N19810">Papiers - Citoyenneté</a>
  <a class="fr-nav__link" href="/particuliers/vosdroits/N19811">Papiers - Citoyenneté</a>
  <a class="fr-nav__link" href="https://service-public.gouv.fr/particuliers/vosdroits/N19805">Famille</a>
  <a class="fr-nav__link" href="/particuliers/actualites">Actualités</a>
  <a class="fr-nav__link" href="https://example.com/particuliers/vosdroits/N1">Ailleurs</a>
</nav>
</body></html>
"""

LIFE_EVENTS_HTML = """
<html><body><main>
<div class="fr-grid-row">
  <a class="fr-tile__link" href="/particuliers/vosdroits/F16225">J'attends un enfant</a>
  <a class="fr-tile__link" href="/particuliers/vosdroits/F17163">Je déménage</a>
  <a class="fr-tile__link" href="/particuliers/vosdroits/F99999">Je déménage</a>
  <a class="fr-tile__link" href="">Sans lien</a>
</div>
</main></body></html>
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    @pytest.mark.parametrize("given, expected", [(None, 10), (0, 10), (-3, 10), (101, 10), (1, 1), (100, 100), (25, 25)])
    def test_clamp_limit(self, given, expected) -> None:
        assert clamp_limit(given) == expected

    def test_keep_fragment_filters_short_and_boilerplate(self) -> None:
        rules = ExtractionRules()
        assert keep_fragment("Exactly10!", rules) is False
        assert keep_fragment("Eleven char", rules) is True
        assert keep_fragment("Gestion des Cookie du site", rules) is False
        assert keep_fragment("Navigation principale du site", rules) is False


# ---------------------------------------------------------------------------
# Search results
# ---------------------------------------------------------------------------

class TestSearchResults:
    def test_extracts_cards_in_order(self) -> None:
        results = _run(SEARCH_HTML, SEARCH_RULES).resolve()
        assert [r.title for r in results] == ["Passeport", "Carte d'identité", "Formulaire Cerfa"]
        assert all(isinstance(r, SearchResult) for r in results)

    def test_populates_optional_fields(self) -> None:
        first = _run(SEARCH_HTML, SEARCH_RULES).resolve()[0]
        assert first.url == f"{SP_BASE}/particuliers/vosdroits/F1342"
        assert first.description == "Demande de passeport biométrique"
        assert first.type == "Fiche pratique"
        assert first.date == "Vérifié le 01 janvier 2024"

    def test_missing_optional_fields_are_empty(self) -> None:
        second = _run(SEARCH_HTML, SEARCH_RULES).resolve()[1]
        assert second.description == ""
        assert second.type is None
        assert second.date is None

    def test_relative_links_resolve_against_final_url(self) -> None:
        page = RawPage(
            url=f"{SP_BASE}/particuliers/recherche?keyword=x",
            html=SEARCH_HTML,
            status_code=200,
            final_url="https://service-public.gouv.fr/particuliers/recherche?keyword=x",
        )
        session = ExtractionSession(url=page.url)
        extract(page, SERVICE_PUBLIC, SEARCH_RULES, session)
        assert session.records[0].url == "https://service-public.gouv.fr/particuliers/vosdroits/F1342"

    def test_limit_caps_results(self) -> None:
        cards = "".join(
            f'<div class="fr-card"><h3 class="fr-card__title"><a href="/f/F{i}">Fiche numéro {i}</a></h3></div>'
            for i in range(30)
        )
        results = _run(f"<html><body>{cards}</body></html>", SEARCH_RULES, limit=10).resolve()
        assert len(results) == 10
        assert results[-1].title == "Fiche numéro 9"

    def test_page_without_cards_yields_nothing(self) -> None:
        assert _run("<html><body><p>Aucun résultat</p></body></html>", SEARCH_RULES).resolve() == []


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------

class TestArticle:
    @pytest.fixture(autouse=True)
    def _metadata(self, monkeypatch):
        monkeypatch.setattr(
            extractor.trafilatura,
            "extract_metadata",
            lambda html, default_url=None: SimpleNamespace(description="Résumé fourni par les métadonnées"),
        )

    def _article(self, html=ARTICLE_HTML, site=SERVICE_PUBLIC, url=None) -> Article:
        return _run(html, ARTICLE_RULES, site=site, url=url).resolve_document()

    def test_title_from_h1(self) -> None:
        assert self._article().title == "Certificat d'immatriculation"

    def test_body_starts_with_introduction(self) -> None:
        content = self._article().content
        assert content.startswith("Le certificat d'immatriculation est obligatoire.")

    def test_body_filters_short_and_boilerplate_fragments(self) -> None:
        content = self._article().content
        assert "Court" not in content
        assert "javascript" not in content
        assert "La demande se fait en ligne" in content
        assert "Pièce d'identité en cours de validité" in content

    def test_nested_fragments_are_not_repeated(self) -> None:
        content = self._article().content
        assert content.count("Attention aux sites frauduleux payants.") == 1
        assert content.count("Le certificat d'immatriculation est obligatoire.") == 1

    def test_url_is_the_requested_one(self) -> None:
        assert self._article().url == f"{SP_BASE}/particuliers/vosdroits/F1234"

    def test_type_from_breadcrumb(self) -> None:
        assert self._article().type == "Formulaire"
        qr = ARTICLE_HTML.replace("Formulaire", "Question-réponse")
        assert self._article(qr).type == "Question-Réponse"
        plain = ARTICLE_HTML.replace("Formulaire", "Papiers")
        assert self._article(plain).type == "Article"

    def test_type_absent_without_breadcrumb(self) -> None:
        html = ARTICLE_HTML.replace('class="fr-breadcrumb"', 'class="other"')
        assert self._article(html).type is None

    def test_description_from_metadata(self) -> None:
        assert self._article().description == "Résumé fourni par les métadonnées"

    def test_description_falls_back_to_meta_tag(self, monkeypatch) -> None:
        monkeypatch.setattr(extractor.trafilatura, "extract_metadata", lambda html, default_url=None: None)
        assert self._article().description == "Toutes les démarches pour la carte grise"

    def test_placeholder_title_without_h1(self) -> None:
        html = "<html><body><main><p>Un paragraphe suffisamment long.</p></main></body></html>"
        assert self._article(html).title == "Article from service-public.gouv.fr"

    def test_impots_title_is_cut_at_separator(self) -> None:
        html = (
            "<html><head><title>Déclarer mes revenus | impots.gouv.fr</title></head>"
            "<body><main><p>La déclaration en ligne est obligatoire.</p></main></body></html>"
        )
        doc = self._article(html, site=IMPOTS, url="https://www.impots.gouv.fr/particulier/declarer")
        assert doc.title == "Déclarer mes revenus"
        assert doc.content == "La déclaration en ligne est obligatoire."

    def test_body_falls_back_to_page_body(self) -> None:
        html = "<html><body><h1>Titre</h1><p>Texte hors de tout conteneur.</p></body></html>"
        assert self._article(html).content == "Texte hors de tout conteneur."

    def test_empty_page_has_no_content(self) -> None:
        with pytest.raises(NoContentError):
            self._article("<html><body><main><h1>Vide</h1></main></body></html>")


# ---------------------------------------------------------------------------
# Life-event detail
# ---------------------------------------------------------------------------

class TestLifeEventDetail:
    def _detail(self, html=LIFE_EVENT_HTML) -> LifeEventDetail:
        return _run(html, LIFE_EVENT_DETAIL_RULES, url=f"{SP_BASE}/particuliers/vosdroits/F16225").resolve_document()

    def test_title_and_introduction(self) -> None:
        detail = self._detail()
        assert detail.title == "J'attends un enfant"
        assert detail.introduction == (
            "Vous attendez un enfant, voici les démarches.\n\nPremier paragraphe avant les sections."
        )

    def test_sections_split_on_h2(self) -> None:
        sections = self._detail().sections
        assert [s.title for s in sections] == ["Avant la naissance", "Après la naissance"]
        assert sections[0].content == (
            "Déclarer la grossesse à la caisse d'allocations familiales.\n\n"
            "Examens prénataux obligatoires"
        )

    def test_section_without_content_is_dropped(self) -> None:
        assert "Section vide" not in [s.title for s in self._detail().sections]

    def test_page_without_text_has_no_content(self) -> None:
        with pytest.raises(NoContentError):
            self._detail("<html><body><main><h1>Titre</h1><h2>Seul</h2></main></body></html>")


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

class TestCategories:
    def test_service_public_navigation(self) -> None:
        categories = _run(NAV_HTML, CATEGORY_RULES, url=f"{SP_BASE}/particuliers").resolve()
        assert [c.name for c in categories] == ["Papiers - Citoyenneté", "Famille"]
        assert categories[0].url == f"{SP_BASE}/particuliers/vosdroits/N19810"
        assert categories[0].description == "Information and procedures: Papiers - Citoyenneté"

    def test_impots_generated_description(self) -> None:
        html = """
        <nav class="fr-nav">
          <a class="fr-nav__link" href="/particulier">Particulier</a>
          <a class="fr-nav__link" href="/particulier/questions/abc">Une question</a>
        </nav>
        """
        categories = _run(html, CATEGORY_RULES, site=IMPOTS, url="https://www.impots.gouv.fr/particulier").resolve()
        assert len(categories) == 1
        assert categories[0].description == "Information fiscale pour particulier"


class TestLifeEvents:
    def test_deduplicated_by_title(self) -> None:
        events = _run(LIFE_EVENTS_HTML, LIFE_EVENT_RULES, url=f"{SP_BASE}/particuliers/vosdroits/N19808").resolve()
        assert [e.title for e in events] == ["J'attends un enfant", "Je déménage"]
        assert events[1].url == f"{SP_BASE}/particuliers/vosdroits/F17163"


# ---------------------------------------------------------------------------
# Session policies
# ---------------------------------------------------------------------------

def _failing_rule(doc, site):
    raise FetchError("broken rule")
    yield  # pragma: no cover


def _two_records(doc, site):
    yield SearchResult(title="Premier", url="https://www.service-public.gouv.fr/a")
    yield SearchResult(title="Second", url="https://www.service-public.gouv.fr/b")


class TestSessionPolicy:
    def test_error_without_records_is_raised(self) -> None:
        session = ExtractionSession(url="u")
        session.fail(FetchError("first"))
        session.fail(FetchError("second"))
        with pytest.raises(FetchError, match="first"):
            session.resolve()

    def test_partial_records_are_returned_with_warning(self, caplog) -> None:
        session = _run("<html></html>", (_two_records, _failing_rule))
        with caplog.at_level(logging.WARNING, logger="vosdroits.scraper.extractor"):
            records = session.resolve()
        assert [r.title for r in records] == ["Premier", "Second"]
        assert "broken rule" in caplog.text

    def test_failing_rule_does_not_stop_later_rules(self) -> None:
        session = _run("<html></html>", (_failing_rule, _two_records))
        assert len(session.records) == 2
        assert isinstance(session.error, ScraperError)

    def test_limit_spans_rules(self) -> None:
        session = _run("<html></html>", (_two_records, _two_records), limit=3)
        assert len(session.records) == 3

    def test_no_records_and_no_error_is_empty(self) -> None:
        assert ExtractionSession(url="u").resolve() == []

    def test_resolve_document_without_records(self) -> None:
        with pytest.raises(NoContentError):
            ExtractionSession(url="u").resolve_document()

    def test_cancelled_session_discards_records(self) -> None:
        token = CancelToken()

        def _cancel_midway(doc, site):
            yield SearchResult(title="Perdu", url="https://www.service-public.gouv.fr/a")
            token.cancel()

        session = ExtractionSession(url="u", cancel=token)
        with pytest.raises(OperationCancelledError):
            extract(_page("<html></html>"), SERVICE_PUBLIC, (_cancel_midway,), session)
        assert session.records == []
