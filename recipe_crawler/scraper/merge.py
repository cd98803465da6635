"""Field-level union of the structured and heuristic extraction results."""

from __future__ import annotations

from typing import Any, Optional

from recipe_crawler.scraper.models import RECIPE_FIELD_NAMES, RawRecipeFields


def is_absent(value: Any) -> bool:
    """``None``, empty strings and empty collections count as absent."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def merge_fields(
    primary: Optional[RawRecipeFields],
    fallback: Optional[RawRecipeFields],
) -> RawRecipeFields:
    """Keep each *primary* field unless absent, else take *fallback*'s."""
    primary = primary or RawRecipeFields()
    fallback = fallback or RawRecipeFields()
    merged = {}
    for name in RECIPE_FIELD_NAMES:
        value = getattr(primary, name)
        if is_absent(value):
            value = getattr(fallback, name)
        merged[name] = None if is_absent(value) else value
    return RawRecipeFields(**merged)
