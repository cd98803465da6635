"""JSON-LD recipe extraction.

Pages embed schema.org data in ``<script type="application/ld+json">``
blocks.  Field shapes vary between sites and template versions, so each
field category has one normaliser:

* ``_first_text``   — scalar | {"text"|"name"|"@value": ...} | list of either
* ``_names``        — string | {"name": ...} | list of either
* ``_image_url``    — string | {"url": ...} | list of either
* ``_instructions`` — string | list | {"itemListElement": [...]} | other object
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterator, List, Optional

from bs4 import BeautifulSoup

from recipe_crawler.scraper.models import RawRecipeFields
from recipe_crawler.scraper.ratings import normalize_rating
from recipe_crawler.scraper.text import clean_text

logger = logging.getLogger(__name__)

JSONLD_SELECTOR = 'script[type="application/ld+json"]'
_NESTED_KEYS = ("@graph", "graph", "mainEntity", "mainEntityOfPage")
_TYPE_SEPARATORS = re.compile(r"[/#:]")
_TEXT_KEYS = ("text", "name", "@value")


# ---------------------------------------------------------------------------
# Block discovery
# ---------------------------------------------------------------------------

def iter_jsonld_blocks(soup: BeautifulSoup) -> Iterator[Any]:
    """Yield each parsed JSON-LD payload; unparseable blocks are skipped."""
    for script in soup.select(JSONLD_SELECTOR):
        payload = script.string if script.string is not None else script.get_text()
        if not payload or not payload.strip():
            continue
        try:
            yield json.loads(payload)
        except (json.JSONDecodeError, ValueError) as exc:
            logger.debug("Discarding malformed JSON-LD block: %s", exc)


def flatten_nodes(value: Any) -> List[dict]:
    """Collect every object reachable through lists and the nested keys."""
    nodes: List[dict] = []
    pending = [value]
    while pending:
        current = pending.pop(0)
        if isinstance(current, list):
            pending[:0] = current
            continue
        if not isinstance(current, dict):
            continue
        nodes.append(current)
        nested = [current[key] for key in _NESTED_KEYS if isinstance(current.get(key), (dict, list))]
        pending[:0] = nested
    return nodes


def _short_type(value: Any) -> str:
    # "http://schema.org/Recipe" and "schema:Recipe" both name Recipe.
    return _TYPE_SEPARATORS.split(str(value).strip())[-1]


def node_types(node: dict) -> List[str]:
    raw = node.get("@type", node.get("type"))
    if isinstance(raw, list):
        return [_short_type(t) for t in raw]
    if raw is None:
        return []
    return [_short_type(raw)]


def is_recipe(node: dict) -> bool:
    return "Recipe" in node_types(node)


def find_recipe_node(soup: BeautifulSoup) -> Optional[dict]:
    """Return the best Recipe node on the page.

    The first candidate with a non-empty ``name`` wins; otherwise the first
    candidate in document order.
    """
    candidates = [
        node
        for payload in iter_jsonld_blocks(soup)
        for node in flatten_nodes(payload)
        if is_recipe(node)
    ]
    if not candidates:
        return None
    for node in candidates:
        if _first_text(node.get("name")):
            return node
    return candidates[0]


# ---------------------------------------------------------------------------
# Field normalisers
# ---------------------------------------------------------------------------

def _as_list(value: Any) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _names(value: Any) -> Optional[str]:
    """Deduplicate and comma-join strings and ``{"name": ...}`` objects."""
    seen: set[str] = set()
    names: List[str] = []
    for item in _as_list(value):
        if isinstance(item, dict):
            item = item.get("name")
        text = clean_text(item)
        if text and text not in seen:
            seen.add(text)
            names.append(text)
    return ", ".join(names) or None


def _image_url(value: Any) -> Optional[str]:
    for item in _as_list(value):
        if isinstance(item, dict):
            item = item.get("url") or item.get("contentUrl")
        if isinstance(item, str) and item.strip():
            return item.strip()
    return None


def _instructions(value: Any) -> List[str]:
    steps: List[str] = []

    def _visit(item: Any) -> None:
        if item is None:
            return
        if isinstance(item, list):
            for child in item:
                _visit(child)
            return
        if isinstance(item, dict):
            if isinstance(item.get("itemListElement"), list):
                _visit(item["itemListElement"])
                return
            item = item.get("text") or item.get("name") or item.get("description")
        text = clean_text(item)
        if text:
            steps.append(text)

    _visit(value)
    return steps


def _unwrap(item: Any) -> Any:
    """Reduce ``{"text": ...}`` / ``{"name": ...}`` / ``{"@value": ...}`` to its value."""
    if not isinstance(item, dict):
        return item
    for key in _TEXT_KEYS:
        if item.get(key) is not None:
            return item[key]
    return None


def _first_text(value: Any) -> Optional[str]:
    """First non-empty scalar in *value*, which may be a list or wrapper object."""
    for item in _as_list(value):
        text = clean_text(_unwrap(item))
        if text:
            return text
    return None


def _ingredients(value: Any) -> List[str]:
    return [text for text in (clean_text(_unwrap(item)) for item in _as_list(value)) if text]


def _nutrition(value: Any) -> Optional[dict[str, str]]:
    if not isinstance(value, dict):
        return None
    table = {
        key: clean_text(raw)
        for key, raw in value.items()
        if not key.startswith("@") and clean_text(raw)
    }
    return table or None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def fields_from_node(node: dict) -> RawRecipeFields:
    """Map a schema.org Recipe object onto :class:`RawRecipeFields`."""
    return RawRecipeFields(
        name=_first_text(node.get("name")),
        description=_first_text(node.get("description")),
        image=_image_url(node.get("image")),
        prep_time=_first_text(node.get("prepTime")),
        cook_time=_first_text(node.get("cookTime")),
        total_time=_first_text(node.get("totalTime")),
        servings=_first_text(node.get("recipeYield")),
        ingredients=_ingredients(node.get("recipeIngredient")) or None,
        instructions=_instructions(node.get("recipeInstructions")) or None,
        rating=normalize_rating(node.get("aggregateRating")),
        author=_names(node.get("author")),
        category=_names(node.get("recipeCategory")),
        cuisine=_names(node.get("recipeCuisine")),
        keywords=_names(node.get("keywords")),
        nutrition=_nutrition(node.get("nutrition")),
    )


def extract_structured(soup: BeautifulSoup) -> Optional[RawRecipeFields]:
    """Return the page's JSON-LD recipe, or ``None`` if it has none."""
    node = find_recipe_node(soup)
    if node is None:
        return None
    return fields_from_node(node)
