"""Database layer package.

Public re-exports so callers can write::

    from recipe_crawler.db import get_connection, init_db
"""

from recipe_crawler.db.connection import get_connection
from recipe_crawler.db.migrations import init_db

__all__ = ["get_connection", "init_db"]
