"""Crawl package — frontier, page handling and the concurrent runner."""

from recipe_crawler.crawler.frontier import CrawlStats, Frontier
from recipe_crawler.crawler.handlers import PageHandler, TaskOutcome, extract_recipe
from recipe_crawler.crawler.runner import CrawlResult, run_crawl

__all__ = [
    "CrawlStats",
    "Frontier",
    "PageHandler",
    "TaskOutcome",
    "extract_recipe",
    "CrawlResult",
    "run_crawl",
]
