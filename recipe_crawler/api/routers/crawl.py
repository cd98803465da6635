"""Crawl endpoint.

Routes
------
POST /crawl    Body: {"query": "...", "start_urls": [...], ...}  → run_crawl
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from recipe_crawler.config import RunConfig
from recipe_crawler.crawler.runner import run_crawl
from recipe_crawler.sinks import MemorySink, MultiSink, SqliteSink

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class CrawlRequest(BaseModel):
    query: Optional[str] = None
    start_urls: list[str] = Field(default_factory=list)
    max_records: Optional[int] = Field(default=None, ge=1)
    max_pages: Optional[int] = Field(default=None, ge=1)
    concurrency: Optional[int] = Field(default=None, ge=1, le=32)


class CrawlResponse(BaseModel):
    seeds: list[str]
    stats: dict[str, int]
    source_urls: list[str]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

def _run_config(body: CrawlRequest) -> RunConfig:
    config = RunConfig(seed_urls=list(body.start_urls))
    if body.query:
        config.seed_query = body.query
    if body.max_records is not None:
        config.max_records = body.max_records
    if body.max_pages is not None:
        config.max_list_pages = body.max_pages
    if body.concurrency is not None:
        config.max_concurrency = body.concurrency
    return config


@router.post("", response_model=CrawlResponse)
def crawl(body: CrawlRequest, request: Request) -> dict[str, Any]:
    """Run a bounded crawl synchronously and store every recipe found.

    Returns the run counters and the source URLs of the stored recipes.
    """
    memory = MemorySink()
    sink = MultiSink([SqliteSink(request.app.state.db, lock=request.app.state.db_lock), memory])
    try:
        result = run_crawl(_run_config(body), sink)
    except Exception as exc:
        raise HTTPException(status_code=502, detail=f"Crawl failed: {exc}") from exc
    return {
        "seeds": result.seeds,
        "stats": result.stats.as_dict(),
        "source_urls": [r.source_url for r in memory.records],
    }
