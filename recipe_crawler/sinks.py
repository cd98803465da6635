"""Destinations for emitted recipe records.

A sink receives each :class:`RecipeRecord` exactly once, from whichever
worker thread finished the extraction, so implementations serialise their
own writes.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from recipe_crawler.db.recipes import save_recipe
from recipe_crawler.scraper.models import RecipeRecord


class RecipeSink(Protocol):
    def emit(self, record: RecipeRecord) -> None: ...


class MemorySink:
    """Keeps records in a list, in emission order."""

    def __init__(self) -> None:
        self.records: List[RecipeRecord] = []
        self._lock = threading.Lock()

    def emit(self, record: RecipeRecord) -> None:
        with self._lock:
            self.records.append(record)


class SqliteSink:
    """Upserts records into the ``recipes`` table.

    Sinks that write through the same connection must share *lock*.
    """

    def __init__(self, conn: sqlite3.Connection, lock: Optional[threading.Lock] = None) -> None:
        self.conn = conn
        self.lock = lock or threading.Lock()

    def emit(self, record: RecipeRecord) -> None:
        with self.lock:
            save_recipe(self.conn, record)


class JsonlSink:
    """Appends one dataset item (camelCase keys) per line to *path*."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def emit(self, record: RecipeRecord) -> None:
        line = json.dumps(record.to_item(), ensure_ascii=False)
        with self._lock:
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")


class MultiSink:
    """Fans each record out to several sinks in order."""

    def __init__(self, sinks: Sequence[RecipeSink]) -> None:
        self.sinks = list(sinks)

    def emit(self, record: RecipeRecord) -> None:
        for sink in self.sinks:
            sink.emit(record)
