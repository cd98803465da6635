"""CRUD and search for the ``recipes`` table."""

from __future__ import annotations

import json
import re
import sqlite3
import uuid
from time import time
from typing import Optional

from recipe_crawler.db.models import StoredRecipe
from recipe_crawler.scraper.models import RecipeRecord


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_recipe(row: sqlite3.Row) -> StoredRecipe:
    return StoredRecipe(
        id=row["id"],
        record=RecipeRecord.from_dict(json.loads(row["data"])),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _search_text(record: RecipeRecord) -> str:
    parts = [
        record.description or "",
        " ".join(record.ingredients),
        record.category or "",
        record.cuisine or "",
        record.keywords or "",
        record.author or "",
    ]
    return " ".join(p for p in parts if p)


def _sanitize_fts_query(text: str) -> Optional[str]:
    """Quote each word token (≥3 chars) so FTS5 punctuation can't break the query.

    Returns ``None`` when no token survives.
    """
    tokens = re.findall(r"[A-Za-z0-9]{3,}", text)
    seen: set[str] = set()
    unique = []
    for token in tokens:
        if token.lower() not in seen:
            seen.add(token.lower())
            unique.append(token)
    if not unique:
        return None
    return " ".join(f'"{t}"' for t in unique)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def save_recipe(conn: sqlite3.Connection, record: RecipeRecord) -> StoredRecipe:
    """Insert *record*, or update the row already stored for its ``source_url``.

    Re-scraping a URL keeps the original ``id`` and ``created_at``.
    """
    now = int(time())
    with conn:
        conn.execute(
            """
            INSERT INTO recipes (id, source_url, name, data, search_text, scraped_at, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(source_url) DO UPDATE SET
                name        = excluded.name,
                data        = excluded.data,
                search_text = excluded.search_text,
                scraped_at  = excluded.scraped_at,
                updated_at  = excluded.updated_at
            """,
            (
                str(uuid.uuid4()),
                record.source_url,
                record.name,
                json.dumps(record.to_dict()),
                _search_text(record),
                record.scraped_at,
                now,
                now,
            ),
        )
    return get_recipe_by_url(conn, record.source_url)  # type: ignore[return-value]


def get_recipe(conn: sqlite3.Connection, recipe_id: str) -> Optional[StoredRecipe]:
    """Fetch a single recipe by id.  Returns ``None`` if not found."""
    row = conn.execute("SELECT * FROM recipes WHERE id = ?", (recipe_id,)).fetchone()
    return _row_to_recipe(row) if row else None


def get_recipe_by_url(conn: sqlite3.Connection, source_url: str) -> Optional[StoredRecipe]:
    row = conn.execute(
        "SELECT * FROM recipes WHERE source_url = ?", (source_url,)
    ).fetchone()
    return _row_to_recipe(row) if row else None


def list_recipes(
    conn: sqlite3.Connection,
    limit: int = 50,
    offset: int = 0,
) -> list[StoredRecipe]:
    """Return recipes, most recently stored first."""
    rows = conn.execute(
        "SELECT * FROM recipes ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
        (limit, offset),
    ).fetchall()
    return [_row_to_recipe(r) for r in rows]


def count_recipes(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT COUNT(*) FROM recipes").fetchone()
    return row[0] if row else 0


def search_recipes(conn: sqlite3.Connection, query: str, top_k: int = 10) -> list[StoredRecipe]:
    """Full-text search over name, ingredients, tags and author."""
    fts_query = _sanitize_fts_query(query)
    if fts_query is None:
        return []
    rows = conn.execute(
        """
        SELECT r.*
        FROM   recipes r
        JOIN   recipes_fts f ON r.id = f.id
        WHERE  recipes_fts MATCH ?
        ORDER  BY bm25(recipes_fts)
        LIMIT  ?
        """,
        (fts_query, top_k),
    ).fetchall()
    return [_row_to_recipe(r) for r in rows]


def delete_recipe(conn: sqlite3.Connection, recipe_id: str) -> bool:
    """Delete a recipe.  Returns ``False`` if it did not exist."""
    with conn:
        cursor = conn.execute("DELETE FROM recipes WHERE id = ?", (recipe_id,))
    return cursor.rowcount > 0
