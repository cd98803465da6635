"""Crawl frontier: pending queue, URL dedup, quota and depth caps.

All shared crawl state lives on one :class:`Frontier` instance and is only
touched under its lock, so workers can evaluate the remaining quota and
enqueue concurrently without overshooting ``max_records``.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import asdict, dataclass
from typing import Deque, Iterable, List, Optional

from recipe_crawler.scraper.models import CrawlTask, Label


@dataclass
class CrawlStats:
    """Counters reported at the end of a run."""

    pages_fetched: int = 0
    fetch_failures: int = 0
    list_pages: int = 0
    records_emitted: int = 0
    reclassified: int = 0
    skipped: int = 0
    task_errors: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class Frontier:
    def __init__(self, max_records: Optional[int], max_list_pages: int) -> None:
        if max_records is not None and max_records < 1:
            raise ValueError("max_records must be positive or None")
        if max_list_pages < 1:
            raise ValueError("max_list_pages must be positive")
        self.max_records = max_records
        self.max_list_pages = max_list_pages
        self.stats = CrawlStats()
        self._lock = threading.Lock()
        self._queue: Deque[CrawlTask] = deque()
        self._seen: set[str] = set()
        self._emitted = 0
        self._in_flight = 0

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------
    def seed(self, urls: Iterable[str]) -> int:
        """Enqueue *urls* as page-1 LIST tasks; returns how many were new."""
        return len(self.enqueue_many(CrawlTask(url, Label.LIST, 1) for url in urls))

    def enqueue(self, task: CrawlTask) -> bool:
        """Add *task* unless its URL was already seen."""
        return bool(self.enqueue_many([task]))

    def enqueue_many(
        self, tasks: Iterable[CrawlTask], limit: Optional[int] = None
    ) -> List[CrawlTask]:
        """Add unseen tasks in order, at most *limit* of them; returns those added."""
        added: List[CrawlTask] = []
        with self._lock:
            for task in tasks:
                if limit is not None and len(added) >= limit:
                    break
                if task.key in self._seen:
                    continue
                self._seen.add(task.key)
                self._queue.append(task)
                added.append(task)
        return added

    def next_task(self) -> Optional[CrawlTask]:
        """Pop the oldest pending task and mark it in flight."""
        with self._lock:
            if not self._queue:
                return None
            self._in_flight += 1
            return self._queue.popleft()

    def task_done(self) -> None:
        with self._lock:
            self._in_flight -= 1

    def is_idle(self) -> bool:
        """True once nothing is queued and nothing is running."""
        with self._lock:
            return not self._queue and self._in_flight == 0

    # ------------------------------------------------------------------
    # Quota / depth
    # ------------------------------------------------------------------
    @property
    def emitted(self) -> int:
        with self._lock:
            return self._emitted

    def remaining(self) -> Optional[int]:
        """Records still allowed, or ``None`` when unbounded."""
        with self._lock:
            if self.max_records is None:
                return None
            return max(0, self.max_records - self._emitted)

    def quota_reached(self) -> bool:
        return self.remaining() == 0

    def can_paginate(self, page_number: int) -> bool:
        """True while quota remains and *page_number* is below the depth cap."""
        return page_number < self.max_list_pages and not self.quota_reached()

    def reserve_emission(self) -> bool:
        """Claim one record slot; ``False`` once the quota is exhausted."""
        with self._lock:
            if self.max_records is not None and self._emitted >= self.max_records:
                return False
            self._emitted += 1
            self.stats.records_emitted += 1
            return True

    def release_emission(self) -> None:
        """Give back a slot claimed by :meth:`reserve_emission`."""
        with self._lock:
            self._emitted -= 1
            self.stats.records_emitted -= 1

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------
    def count(self, name: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self.stats, name, getattr(self.stats, name) + amount)
