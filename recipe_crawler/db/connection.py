"""SQLite connection factory.

Usage::

    from recipe_crawler.db.connection import get_connection

    conn = get_connection()
    cursor = conn.execute("SELECT COUNT(*) FROM recipes")
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from recipe_crawler.config import settings

# Milliseconds a writer waits on a lock held by another process (a CLI crawl
# and the API server can share one database file).
BUSY_TIMEOUT_MS = 5000


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open a SQLite connection for the recipe store.

    WAL journaling lets readers (``recipes list``, ``GET /recipes``) run while
    a crawl is writing.  The connection is opened with
    ``check_same_thread=False`` so crawl workers can share it; writes are
    serialised by the lock each :class:`recipe_crawler.sinks.SqliteSink` holds.

    Args:
        db_path: Override the DB path.  Defaults to ``settings.db_path``.
    """
    path = db_path or settings.db_path

    if str(path) != ":memory:":
        settings.ensure_workspace()

    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    return conn
