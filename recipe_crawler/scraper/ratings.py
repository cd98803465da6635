"""Aggregate-rating normalisation shared by both extractors."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from recipe_crawler.scraper.models import Rating
from recipe_crawler.scraper.text import clean_text

SCORE_KEYS = ("ratingValue", "rating", "value")
COUNT_KEYS = ("ratingCount", "reviewCount", "ratingVotes", "count")


def _first_present(data: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = clean_text(data.get(key))
        if value:
            return value
    return None


def normalize_rating(data: Optional[Mapping[str, Any]]) -> Optional[Rating]:
    """Map any aggregate-rating-like object to a :class:`Rating`.

    Returns ``None`` when neither a score nor a count is present.
    ``review_count`` falls back to ``rating_count`` when the object has no
    ``reviewCount`` key of its own.
    """
    if not isinstance(data, Mapping):
        return None

    score = _first_present(data, SCORE_KEYS)
    count = _first_present(data, COUNT_KEYS)
    if score is None and count is None:
        return None

    review_count = clean_text(data.get("reviewCount")) or count
    return Rating(rating_value=score, rating_count=count, review_count=review_count)
