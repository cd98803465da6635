"""CSS selector chains for the target site's markup.

Every field maps to an ordered tuple of alternatives.  The first alternative
yielding a non-blank value wins, so order matters: put the most specific
selector for the current page template first.  When the site changes its
markup, this is the file to update.

``:-soup-contains()`` is the soupsieve spelling of jQuery's ``:contains()``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class FieldSelector:
    """One extraction strategy: a CSS selector, read as text or an attribute."""

    css: str
    attr: Optional[str] = None


def _text(css: str) -> FieldSelector:
    return FieldSelector(css)


def _attr(css: str, attr: str) -> FieldSelector:
    return FieldSelector(css, attr)


def _detail(label: str) -> Tuple[FieldSelector, ...]:
    return (
        _text(f'.mntl-recipe-details__item:-soup-contains("{label}") .mntl-recipe-details__value'),
        _text(f'[data-unit*="min"]:-soup-contains("{label.split()[0]}")'),
        _text(f'.recipe-meta-item:-soup-contains("{label}")'),
    )


# ---------------------------------------------------------------------------
# Single-value fields
# ---------------------------------------------------------------------------
FIELD_SELECTORS: Dict[str, Tuple[FieldSelector, ...]] = {
    "name": (
        _text("h1.article-heading"),
        _text("h1.headline"),
        _text("h1"),
        _attr('meta[property="og:title"]', "content"),
    ),
    "description": (
        _text("p.article-subheading"),
        _text(".recipe-summary"),
        _text("p.description"),
        _attr('meta[name="description"]', "content"),
    ),
    "image": (
        _attr("img.primary-image", "src"),
        _attr(".recipe-image img", "src"),
        _attr('img[src*="recipe"]', "src"),
        _attr('meta[property="og:image"]', "content"),
    ),
    "prep_time": _detail("Prep Time"),
    "cook_time": _detail("Cook Time"),
    "total_time": _detail("Total Time"),
    "servings": (
        _text('.mntl-recipe-details__item:-soup-contains("Servings") .mntl-recipe-details__value'),
        _text('[data-unit="serving"]'),
        _text('.recipe-meta-item:-soup-contains("Servings")'),
        _text("#recipe-serving"),
    ),
    "rating_value": (
        _attr('meta[itemprop="ratingValue"]', "content"),
        _attr("[data-rating]", "data-rating"),
        _text(".mntl-recipe-review-bar__rating"),
        _text(".rating-value"),
    ),
    "rating_count": (
        _attr('meta[itemprop="reviewCount"]', "content"),
        _attr('meta[itemprop="ratingCount"]', "content"),
        _attr("[data-review-count]", "data-review-count"),
        _text(".mntl-recipe-review-bar__rating-count"),
        _text(".review-count"),
    ),
    "author": (
        _attr('meta[name="author"]', "content"),
        _text('[rel="author"]'),
        _text(".mntl-attribution__item-name"),
        _text(".author-name"),
    ),
}

# ---------------------------------------------------------------------------
# List fields (first selector matching at least one non-blank item wins)
# ---------------------------------------------------------------------------
INGREDIENT_SELECTORS: Tuple[str, ...] = (
    "li.mntl-structured-ingredients__list-item",
    ".ingredients-item",
    "[data-ingredient]",
    "ul.ingredients li",
)

INSTRUCTION_SELECTORS: Tuple[str, ...] = (
    "#recipe__steps li",
    ".recipe-directions li",
    "[data-instruction]",
    "ol.instructions li",
)

# Generic content blocks, used only when no step selector matched.
INSTRUCTION_FALLBACK_SELECTOR = ".mntl-sc-block-html"

# Shorter block texts are treated as noise (labels, icons).
MIN_INSTRUCTION_CHARS = 6

NUTRITION_ROW_SELECTORS: Tuple[str, ...] = (
    ".mm-recipes-nutrition-facts-summary__table-row",
    ".mntl-nutrition-facts-summary__table-row",
    ".nutrition-facts tr",
    "table.nutrition tr",
)

CALORIE_SELECTORS: Tuple[FieldSelector, ...] = (
    _attr('meta[itemprop="calories"]', "content"),
    _text('[itemprop="calories"]'),
    _text(".nutrition-calories"),
    _text('[class*="calories"]'),
)

BREADCRUMB_SELECTORS: Tuple[str, ...] = (
    ".mntl-breadcrumbs__item",
    'nav[aria-label="breadcrumb"] li',
    ".breadcrumbs li",
)

# Breadcrumb entries that carry no category information.
BREADCRUMB_IGNORE = frozenset({"home", "recipes"})

# Crumbs following one of these are cuisines rather than categories.
CUISINE_PARENTS = frozenset({"world cuisine", "cuisines", "cuisine"})

KEYWORD_SELECTORS: Tuple[str, ...] = (
    ".mntl-taxonomy-nodes__link",
    ".tag-list a",
    'a[rel="tag"]',
)

# ---------------------------------------------------------------------------
# Link discovery
# ---------------------------------------------------------------------------
RECIPE_URL_PATTERN = re.compile(r"/recipe/\d+", re.IGNORECASE)

CARD_LINK_SELECTORS = (
    ".card--no-image a, .mntl-card-list-items a, "
    ".comp.mntl-card-list-items a, article a"
)

NEXT_REL_SELECTOR = 'a[rel~="next"], link[rel~="next"]'

NEXT_CONTROL_SELECTOR = ".pagination__next a, a.pagination__next, .mntl-pagination__next a"

PAGINATION_CONTAINER_SELECTOR = ".pagination, .mntl-pagination, nav[aria-label*=agination]"

PAGE_PARAM = "page"
