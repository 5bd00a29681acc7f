"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from vosdroits.api import app

    uvicorn vosdroits.api:app --reload
"""

from vosdroits.api.app import app

__all__ = ["app"]
