"""Scraper package — fetching, recipe extraction and link discovery."""

from recipe_crawler.scraper.fetcher import FetchError, Fetcher, HttpFetcher
from recipe_crawler.scraper.heuristic import extract_heuristic
from recipe_crawler.scraper.links import find_next_page, find_recipe_links
from recipe_crawler.scraper.merge import merge_fields
from recipe_crawler.scraper.models import (
    CrawlTask,
    Label,
    Rating,
    RawPage,
    RawRecipeFields,
    RecipeRecord,
)
from recipe_crawler.scraper.structured import extract_structured
from recipe_crawler.scraper.text import clean_text

__all__ = [
    "FetchError",
    "Fetcher",
    "HttpFetcher",
    "extract_heuristic",
    "extract_structured",
    "merge_fields",
    "find_recipe_links",
    "find_next_page",
    "clean_text",
    "CrawlTask",
    "Label",
    "Rating",
    "RawPage",
    "RawRecipeFields",
    "RecipeRecord",
]
