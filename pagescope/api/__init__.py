"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from pagescope.api import app

    uvicorn pagescope.api:app --reload
"""

from pagescope.api.app import app

__all__ = ["app"]
