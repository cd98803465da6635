"""High-level crawl runner.

``run_crawl`` seeds a :class:`Frontier`, then keeps up to
``max_concurrency`` tasks in flight on a ``ThreadPoolExecutor`` until the
frontier is empty and every in-flight task has finished.  The dispatcher
loop runs on the calling thread; workers only touch shared state through
the frontier's lock.
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Optional

from recipe_crawler.config import RunConfig, settings
from recipe_crawler.crawler.frontier import CrawlStats, Frontier
from recipe_crawler.crawler.handlers import PageHandler, TaskOutcome
from recipe_crawler.scraper.fetcher import Fetcher, HttpFetcher
from recipe_crawler.scraper.models import CrawlTask
from recipe_crawler.sinks import RecipeSink

logger = logging.getLogger(__name__)


@dataclass
class CrawlResult:
    stats: CrawlStats
    seeds: list[str]

    @property
    def records_emitted(self) -> int:
        return self.stats.records_emitted


def run_crawl(
    config: RunConfig,
    sink: RecipeSink,
    fetcher: Optional[Fetcher] = None,
    always_advance: Optional[bool] = None,
) -> CrawlResult:
    """Crawl from *config*'s seeds and emit each extracted recipe to *sink*.

    A ``fetcher`` is created (and closed afterwards) when none is supplied.
    Failures inside a single task are logged and counted; they never stop
    the run.

    Returns:
        A :class:`CrawlResult` with the run's counters.
    """
    seeds = config.start_urls()
    frontier = Frontier(config.max_records, config.max_list_pages)
    if always_advance is None:
        always_advance = settings.always_advance_pagination

    owned_fetcher = None
    if fetcher is None:
        owned_fetcher = fetcher = HttpFetcher(proxy_url=config.proxy_url)

    handler = PageHandler(frontier, fetcher, sink, always_advance=always_advance)
    frontier.seed(seeds)
    logger.info(
        "[START] %d seed(s), max_records=%s, max_list_pages=%d, concurrency=%d",
        len(seeds), config.max_records, config.max_list_pages, config.max_concurrency,
    )

    try:
        _drain(frontier, handler, max(1, config.max_concurrency))
    finally:
        if owned_fetcher is not None:
            owned_fetcher.close()

    logger.info("[DONE] Total recipes saved: %d", frontier.stats.records_emitted)
    return CrawlResult(stats=frontier.stats, seeds=seeds)


def _drain(frontier: Frontier, handler: PageHandler, concurrency: int) -> None:
    in_flight: dict[Future[TaskOutcome], CrawlTask] = {}
    with ThreadPoolExecutor(max_workers=concurrency) as pool:
        while True:
            while len(in_flight) < concurrency:
                task = frontier.next_task()
                if task is None:
                    break
                in_flight[pool.submit(handler.handle, task)] = task

            # Nothing queued and nothing running: no task can add more work.
            if frontier.is_idle():
                break

            done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for future in done:
                task = in_flight.pop(future)
                try:
                    future.result()
                except Exception as exc:
                    frontier.count("task_errors")
                    logger.error("[%s] ✗ Task failed %s: %s", task.label.value, task.url, exc)
                finally:
                    frontier.task_done()
