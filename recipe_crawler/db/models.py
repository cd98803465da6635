"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from recipe_crawler.scraper.models import RecipeRecord


@dataclass
class StoredRecipe:
    id: str
    record: RecipeRecord
    created_at: int
    updated_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            **self.record.to_dict(),
        }
