"""Per-task page handling: LIST discovery, RECIPE extraction, reclassification.

A RECIPE task whose URL is not a detail URL, or whose page yields no name,
ingredients or instructions, is handled as a LIST page instead: its recipe
links are enqueued and nothing is emitted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from bs4 import BeautifulSoup

from recipe_crawler.crawler.frontier import Frontier
from recipe_crawler.scraper.fetcher import FetchError, Fetcher
from recipe_crawler.scraper.heuristic import extract_heuristic
from recipe_crawler.scraper.links import find_next_page, find_recipe_links
from recipe_crawler.scraper.merge import merge_fields
from recipe_crawler.scraper.models import CrawlTask, Label, RawRecipeFields, RecipeRecord
from recipe_crawler.scraper.structured import extract_structured
from recipe_crawler.scraper.urls import is_recipe_url
from recipe_crawler.sinks import RecipeSink

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class TaskOutcome:
    """What handling one task produced."""

    task: CrawlTask
    enqueued: List[CrawlTask] = field(default_factory=list)
    record: Optional[RecipeRecord] = None
    reclassified: bool = False
    skipped: bool = False
    failed: bool = False


def extract_recipe(soup: BeautifulSoup, page_url: str) -> RawRecipeFields:
    """Run both extractors and merge them, JSON-LD taking precedence."""
    structured = extract_structured(soup)
    heuristic = extract_heuristic(soup, page_url)
    return merge_fields(structured, heuristic)


class PageHandler:
    """Classifies and processes one task at a time against a shared frontier."""

    def __init__(
        self,
        frontier: Frontier,
        fetcher: Fetcher,
        sink: RecipeSink,
        always_advance: bool = True,
        clock: Callable[[], str] = _utc_now,
    ) -> None:
        self.frontier = frontier
        self.fetcher = fetcher
        self.sink = sink
        self.always_advance = always_advance
        self.clock = clock

    def handle(self, task: CrawlTask) -> TaskOutcome:
        outcome = TaskOutcome(task=task)

        if task.label is Label.RECIPE and self.frontier.quota_reached():
            logger.debug("[RECIPE] Quota reached, skipping %s", task.url)
            self.frontier.count("skipped")
            outcome.skipped = True
            return outcome

        try:
            raw = self.fetcher.fetch(task.url)
        except FetchError as exc:
            logger.warning("[FETCH] ✗ Failed %s: %s", task.url, exc)
            self.frontier.count("fetch_failures")
            outcome.failed = True
            return outcome

        self.frontier.count("pages_fetched")
        soup = BeautifulSoup(raw.html, "html.parser")

        if task.label is Label.LIST:
            self._handle_list(task, soup, outcome)
        else:
            self._handle_recipe(task, soup, outcome)
        return outcome

    # ------------------------------------------------------------------
    # LIST
    # ------------------------------------------------------------------
    def _enqueue_recipes(self, task: CrawlTask, soup: BeautifulSoup, outcome: TaskOutcome) -> List[str]:
        links = find_recipe_links(soup, task.url)
        candidates = (CrawlTask(url, Label.RECIPE, task.page_number) for url in links)
        outcome.enqueued.extend(
            self.frontier.enqueue_many(candidates, limit=self.frontier.remaining())
        )
        return links

    def _handle_list(self, task: CrawlTask, soup: BeautifulSoup, outcome: TaskOutcome) -> None:
        self.frontier.count("list_pages")
        links = self._enqueue_recipes(task, soup, outcome)
        logger.info(
            "[LIST] Page %d -> found %d recipe link(s), queued %d",
            task.page_number, len(links), len(outcome.enqueued),
        )

        if not links or not self.frontier.can_paginate(task.page_number):
            return
        next_url = find_next_page(soup, task.url, task.page_number, self.always_advance)
        if next_url is None:
            return
        next_task = CrawlTask(next_url, Label.LIST, task.page_number + 1)
        if self.frontier.enqueue(next_task):
            outcome.enqueued.append(next_task)
            logger.info("[LIST] Next page %d queued: %s", next_task.page_number, next_url)

    # ------------------------------------------------------------------
    # RECIPE
    # ------------------------------------------------------------------
    def _reclassify(self, task: CrawlTask, soup: BeautifulSoup, outcome: TaskOutcome, reason: str) -> None:
        self.frontier.count("reclassified")
        outcome.reclassified = True
        links = self._enqueue_recipes(task, soup, outcome)
        logger.info(
            "[RECIPE] %s treated as listing (%s): %d link(s), queued %d",
            task.url, reason, len(links), len(outcome.enqueued),
        )

    def _handle_recipe(self, task: CrawlTask, soup: BeautifulSoup, outcome: TaskOutcome) -> None:
        if not is_recipe_url(task.url):
            self._reclassify(task, soup, outcome, "not a detail URL")
            return

        fields = extract_recipe(soup, task.url)
        if not fields.has_content():
            self._reclassify(task, soup, outcome, "no recipe content")
            return

        if not self.frontier.reserve_emission():
            logger.debug("[RECIPE] Quota reached before emitting %s", task.url)
            self.frontier.count("skipped")
            outcome.skipped = True
            return

        record = RecipeRecord.from_fields(fields, source_url=task.url, scraped_at=self.clock())
        try:
            self.sink.emit(record)
        except Exception:
            self.frontier.release_emission()
            raise
        outcome.record = record

        limit = self.frontier.max_records
        logger.info(
            "[RECIPE] ✓ %s (%d/%s)",
            record.name or task.url, self.frontier.emitted, limit if limit is not None else "∞",
        )
