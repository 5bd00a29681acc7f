"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging, builds one :class:`SiteClient` per
known site (``request.app.state.clients``) and a shared
:class:`CancelToken` (``request.app.state.cancel``).  On shutdown the token
is cancelled so in-flight crawls abort instead of holding the process.

Routers
-------
    /service-public  search, article, categories, life events
    /impots          search, article, categories
    /health          server name and version

Scraper errors are mapped to HTTP status codes by :func:`scraper_error_handler`.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from vosdroits import __version__
from vosdroits.config import settings
from vosdroits.log_config import configure_logging
from vosdroits.scraper import SITES, CancelToken, ScraperError, SiteClient

from vosdroits.api.routers import impots as impots_router
from vosdroits.api.routers import service_public as service_public_router

ERROR_STATUS = {
    "url_invalid": 400,
    "domain_mismatch": 400,
    "invalid_target": 400,
    "not_found": 404,
    "no_content": 422,
    "http_error": 502,
    "fetch_error": 502,
    "cancelled": 499,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the site clients on startup and cancel pending crawls on shutdown."""
    configure_logging(settings.log_level)
    if not hasattr(app.state, "clients"):
        app.state.clients = {site_id: SiteClient(site) for site_id, site in SITES.items()}
    app.state.cancel = CancelToken()
    try:
        yield
    finally:
        app.state.cancel.cancel()


async def scraper_error_handler(request: Request, exc: ScraperError) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.kind, 500),
        content={"error": exc.kind, "detail": exc.message},
    )


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="VosDroits API",
        description=(
            "Structured access to French public-service websites: procedure "
            "and tax searches, article retrieval, category listings and "
            "life-event guides from service-public.gouv.fr and impots.gouv.fr."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    app.add_exception_handler(ScraperError, scraper_error_handler)

    app.include_router(
        service_public_router.router, prefix="/service-public", tags=["service-public"]
    )
    app.include_router(impots_router.router, prefix="/impots", tags=["impots"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"name": settings.server_name, "version": settings.server_version}

    return app


# Module-level instance used by uvicorn:
#   uvicorn vosdroits.api.app:app --reload
app = create_app()
