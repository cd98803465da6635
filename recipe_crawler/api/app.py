"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection (shared across all
requests via ``request.app.state.db``) and initialises the schema.  Every
write through it, from concurrent crawls or deletes, holds
``request.app.state.db_lock``.  On shutdown the connection is closed.

Routers
-------
    /recipes   — list / search / fetch / delete stored recipes
    /crawl     — run a bounded crawl and store its records
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recipe_crawler.db import get_connection, init_db

from recipe_crawler.api.routers import crawl as crawl_router
from recipe_crawler.api.routers import recipes as recipes_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB on startup and close it on shutdown."""
    conn = get_connection()
    init_db(conn)
    app.state.db = conn
    app.state.db_lock = threading.Lock()
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Recipe Crawler API",
        description=(
            "REST interface for the recipe crawler. Runs bounded crawls of the "
            "configured recipe site and serves the stored recipe records."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(recipes_router.router, prefix="/recipes", tags=["recipes"])
    app.include_router(crawl_router.router, prefix="/crawl", tags=["crawl"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn recipe_crawler.api.app:app --reload
app = create_app()
