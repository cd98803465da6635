"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urldefrag


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int


class Label(str, Enum):
    """How a crawl task expects its page to behave."""

    LIST = "LIST"
    RECIPE = "RECIPE"


def normalize_url(url: str) -> str:
    """Strip the fragment; this is the identity used for dedup."""
    return urldefrag(url.strip())[0]


@dataclass(frozen=True)
class CrawlTask:
    """A unit of work in the frontier.  Never mutated after creation."""

    url: str
    label: Label = Label.LIST
    page_number: int = 1

    @property
    def key(self) -> str:
        return normalize_url(self.url)


@dataclass(frozen=True)
class Rating:
    rating_value: Optional[str] = None
    rating_count: Optional[str] = None
    review_count: Optional[str] = None


@dataclass
class RawRecipeFields:
    """Every attribute either extractor can produce.

    ``None`` means absent and is distinct from ``""`` or ``[]``.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    total_time: Optional[str] = None
    servings: Optional[str] = None
    ingredients: Optional[List[str]] = None
    instructions: Optional[List[str]] = None
    rating: Optional[Rating] = None
    author: Optional[str] = None
    category: Optional[str] = None
    cuisine: Optional[str] = None
    keywords: Optional[str] = None
    nutrition: Optional[Dict[str, str]] = None

    def has_content(self) -> bool:
        """True when there is a name, ingredients or instructions."""
        return bool(self.name or self.ingredients or self.instructions)


RECIPE_FIELD_NAMES = tuple(f.name for f in fields(RawRecipeFields))


@dataclass(frozen=True)
class RecipeRecord:
    """The emitted, merged form of :class:`RawRecipeFields`."""

    source_url: str
    scraped_at: str
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    total_time: Optional[str] = None
    servings: Optional[str] = None
    ingredients: List[str] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)
    rating: Optional[Rating] = None
    author: Optional[str] = None
    category: Optional[str] = None
    cuisine: Optional[str] = None
    keywords: Optional[str] = None
    nutrition: Optional[Dict[str, str]] = None

    @classmethod
    def from_fields(
        cls, raw: RawRecipeFields, source_url: str, scraped_at: str
    ) -> RecipeRecord:
        values = {name: getattr(raw, name) for name in RECIPE_FIELD_NAMES}
        values["ingredients"] = list(raw.ingredients or [])
        values["instructions"] = list(raw.instructions or [])
        if raw.nutrition is not None:
            values["nutrition"] = dict(raw.nutrition)
        return cls(source_url=source_url, scraped_at=scraped_at, **values)

    def to_dict(self) -> dict[str, Any]:
        """Snake-case dict, used for DB storage and the API."""
        return asdict(self)

    def to_item(self) -> dict[str, Any]:
        """Dataset item shape with camelCase keys, used for JSONL export."""
        rating = None
        if self.rating is not None:
            rating = {
                "value": self.rating.rating_value,
                "count": self.rating.review_count or self.rating.rating_count,
            }
        return {
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "prepTime": self.prep_time,
            "cookTime": self.cook_time,
            "totalTime": self.total_time,
            "servings": self.servings,
            "ingredients": list(self.ingredients),
            "instructions": list(self.instructions),
            "rating": rating,
            "author": self.author,
            "category": self.category,
            "cuisine": self.cuisine,
            "keywords": self.keywords,
            "nutrition": self.nutrition,
            "url": self.source_url,
            "scrapedAt": self.scraped_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RecipeRecord:
        """Inverse of :meth:`to_dict`."""
        rating = data.get("rating")
        values = {k: data.get(k) for k in RECIPE_FIELD_NAMES}
        values["rating"] = Rating(**rating) if rating else None
        values["ingredients"] = list(data.get("ingredients") or [])
        values["instructions"] = list(data.get("instructions") or [])
        return cls(
            source_url=data["source_url"],
            scraped_at=data["scraped_at"],
            **values,
        )
