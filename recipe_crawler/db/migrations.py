"""Database initialisation.

``init_db(conn)`` is idempotent — safe to call on an existing database.
"""

from __future__ import annotations

import sqlite3

from recipe_crawler.config import settings


def _read_schema() -> str:
    return settings.schema_path.read_text(encoding="utf-8")


def init_db(conn: sqlite3.Connection) -> None:
    """Create the recipes table, its index, the FTS5 table and its triggers.

    Every DDL statement uses ``IF NOT EXISTS`` so calling this repeatedly on
    the same database is safe and keeps stored rows.
    """
    # executescript() issues an implicit COMMIT first, fine for DDL-only scripts.
    conn.executescript(_read_schema())
