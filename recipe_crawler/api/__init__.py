"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from recipe_crawler.api import app

    uvicorn recipe_crawler.api:app --reload
"""

from recipe_crawler.api.app import app

__all__ = ["app"]
