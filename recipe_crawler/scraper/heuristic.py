"""HTML fallback extraction driven by the selector chains in ``selectors``.

Every field degrades to ``None`` on its own; nothing here raises for
missing or malformed markup.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from recipe_crawler.scraper import selectors as sel
from recipe_crawler.scraper.models import RawRecipeFields
from recipe_crawler.scraper.ratings import normalize_rating
from recipe_crawler.scraper.text import clean_text, collapse_whitespace
from recipe_crawler.scraper.urls import resolve_url

logger = logging.getLogger(__name__)

_DIGIT = re.compile(r"\d")
_CALORIES = re.compile(r"(\d[\d,]*)")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _select(root: BeautifulSoup | Tag, css: str) -> List[Tag]:
    try:
        return root.select(css)
    except SelectorSyntaxError:
        logger.warning("Invalid selector skipped: %r", css)
        return []


def _read(element: Tag, attr: Optional[str]) -> str:
    if attr is None:
        return clean_text(element.get_text())
    value = element.get(attr)
    if isinstance(value, list):
        value = " ".join(value)
    return collapse_whitespace(value or "")


def first_match(
    soup: BeautifulSoup, chain: Iterable[sel.FieldSelector]
) -> Optional[str]:
    """Evaluate *chain* in order; the first non-blank value wins."""
    for strategy in chain:
        for element in _select(soup, strategy.css):
            value = _read(element, strategy.attr)
            if value:
                return value
    return None


def collect_texts(
    soup: BeautifulSoup, selectors: Sequence[str], min_chars: int = 1
) -> List[str]:
    """Return the texts of the first selector matching any non-blank item."""
    for css in selectors:
        texts = [clean_text(el.get_text()) for el in _select(soup, css)]
        texts = [t for t in texts if len(t) >= min_chars]
        if texts:
            return texts
    return []


# ---------------------------------------------------------------------------
# Composite fields
# ---------------------------------------------------------------------------

def _nutrition_row(row: Tag) -> Optional[tuple[str, str]]:
    cells = [clean_text(c.get_text()) for c in row.find_all(["td", "th"])]
    cells = [c for c in cells if c]
    if len(cells) < 2:
        return None
    first, second = cells[0], cells[1]
    # Summary tables put the amount first ("231" | "Calories").
    if _DIGIT.search(first) and not _DIGIT.search(second):
        return second, first
    return first, second


def extract_nutrition(soup: BeautifulSoup) -> Optional[Dict[str, str]]:
    """Label → value mapping from the nutrition table, or calories alone."""
    for css in sel.NUTRITION_ROW_SELECTORS:
        table: Dict[str, str] = {}
        for row in _select(soup, css):
            pair = _nutrition_row(row)
            if pair and pair[0] not in table:
                table[pair[0]] = pair[1]
        if table:
            return table

    calories = first_match(soup, sel.CALORIE_SELECTORS)
    if calories:
        match = _CALORIES.search(calories)
        if match:
            return {"Calories": match.group(1).replace(",", "")}
    return None


def extract_breadcrumbs(soup: BeautifulSoup) -> List[str]:
    crumbs = collect_texts(soup, sel.BREADCRUMB_SELECTORS)
    return [c for c in crumbs if c.lower() not in sel.BREADCRUMB_IGNORE]


def category_and_cuisine(crumbs: Sequence[str]) -> tuple[Optional[str], Optional[str]]:
    """Split a breadcrumb trail into ``(category, cuisine)``.

    ``Main Dishes > Chicken`` gives ``("Chicken", None)``;
    ``Main Dishes > World Cuisine > Asian > Chinese`` gives
    ``("Main Dishes", "Chinese")``.
    """
    for index, crumb in enumerate(crumbs[:-1]):
        if crumb.lower() in sel.CUISINE_PARENTS:
            before = crumbs[:index]
            return (before[-1] if before else None), crumbs[-1]
    return (crumbs[-1] if crumbs else None), None


def extract_keywords(soup: BeautifulSoup) -> Optional[str]:
    seen: set[str] = set()
    tags: List[str] = []
    for tag in collect_texts(soup, sel.KEYWORD_SELECTORS):
        if tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return ", ".join(tags) or None


def extract_instructions(soup: BeautifulSoup) -> List[str]:
    steps = collect_texts(soup, sel.INSTRUCTION_SELECTORS, sel.MIN_INSTRUCTION_CHARS)
    if steps:
        return steps
    return collect_texts(
        soup, (sel.INSTRUCTION_FALLBACK_SELECTOR,), sel.MIN_INSTRUCTION_CHARS
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_heuristic(soup: BeautifulSoup, page_url: str) -> RawRecipeFields:
    """Derive :class:`RawRecipeFields` from the visible page."""
    chains = sel.FIELD_SELECTORS

    # The visible count is the review count; it also stands in for the rating count.
    rating = normalize_rating(
        {
            "ratingValue": first_match(soup, chains["rating_value"]),
            "reviewCount": first_match(soup, chains["rating_count"]),
        }
    )

    category, cuisine = category_and_cuisine(extract_breadcrumbs(soup))

    return RawRecipeFields(
        name=first_match(soup, chains["name"]),
        description=first_match(soup, chains["description"]),
        image=resolve_url(first_match(soup, chains["image"]), page_url),
        prep_time=first_match(soup, chains["prep_time"]),
        cook_time=first_match(soup, chains["cook_time"]),
        total_time=first_match(soup, chains["total_time"]),
        servings=first_match(soup, chains["servings"]),
        ingredients=collect_texts(soup, sel.INGREDIENT_SELECTORS) or None,
        instructions=extract_instructions(soup) or None,
        rating=rating,
        author=first_match(soup, chains["author"]),
        category=category,
        cuisine=cuisine,
        keywords=extract_keywords(soup),
        nutrition=extract_nutrition(soup),
    )
