"""Recipe crawler CLI — entry-point for all crawler operations.

Usage:
    python cli/main.py --help

Commands:
    crawl     → crawl the recipe site from a query or start URLs
    scrape    → extract a single recipe page and print it
    db        → database maintenance
    recipes   → browse / search / export stored recipes
    serve     → run the HTTP API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that
# `from recipe_crawler.xxx import ...` works when the CLI is invoked as
# `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

import typer

from recipe_crawler.config import RunConfig, settings
from recipe_crawler.db import get_connection, init_db

from cli.commands.recipes import recipes_app

app = typer.Typer(
    name="recipe-crawler",
    help="Recipe crawler CLI.",
    no_args_is_help=True,
)
app.add_typer(recipes_app, name="recipes")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# Crawl commands
# ---------------------------------------------------------------------------
@app.command("crawl")
def crawl(
    query: Optional[str] = typer.Argument(None, help="Search query (ignored when start URLs are given)."),
    start_url: Optional[List[str]] = typer.Option(None, "--start-url", help="Seed URL; repeat for several."),
    max_records: Optional[int] = typer.Option(None, "--max-records", min=1, help="Stop after this many recipes."),
    max_pages: Optional[int] = typer.Option(None, "--max-pages", min=1, help="Maximum listing-page depth."),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", min=1, help="Concurrent fetches."),
    proxy: Optional[str] = typer.Option(None, "--proxy", help="Proxy URL passed to the HTTP client."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also append records to this JSONL file."),
    input_file: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        help="JSON run input (query, startUrls, results_wanted, max_pages, concurrency, proxyUrl). Flags override it.",
    ),
    no_db: bool = typer.Option(False, "--no-db", help="Do not store records in the database."),
) -> None:
    """Crawl listing pages and store every recipe found."""
    from recipe_crawler.crawler.runner import run_crawl
    from recipe_crawler.sinks import JsonlSink, MultiSink, SqliteSink

    if input_file is not None:
        try:
            data = json.loads(input_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            typer.echo(f"[crawl] ✗ Cannot read input {input_file}: {exc}")
            raise typer.Exit(1)
        if not isinstance(data, dict):
            typer.echo(f"[crawl] ✗ Input {input_file} must be a JSON object.")
            raise typer.Exit(1)
        config = RunConfig.from_input(data)
    else:
        config = RunConfig()
    if start_url:
        config.seed_urls = list(start_url)
    if query:
        config.seed_query = query
    if max_records is not None:
        config.max_records = max_records
    if max_pages is not None:
        config.max_list_pages = max_pages
    if concurrency is not None:
        config.max_concurrency = concurrency
    if proxy:
        config.proxy_url = proxy

    sinks = []
    conn = None
    if not no_db:
        conn = get_connection()
        init_db(conn)
        sinks.append(SqliteSink(conn))
    if output is not None:
        sinks.append(JsonlSink(output))
    if not sinks:
        typer.echo("[crawl] Nothing to write to: drop --no-db or pass --output.")
        raise typer.Exit(1)

    typer.echo(f"[crawl] Starting from {', '.join(config.start_urls())}")
    try:
        result = run_crawl(config, MultiSink(sinks))
    finally:
        if conn is not None:
            conn.close()

    stats = result.stats
    typer.echo(
        f"[crawl] Done: {stats.records_emitted} recipe(s), "
        f"{stats.list_pages} listing page(s), {stats.fetch_failures} failed fetch(es)."
    )


@app.command("scrape")
def scrape(
    url: str = typer.Argument(..., help="Recipe page URL."),
) -> None:
    """Fetch one recipe page and print the merged record as JSON."""
    from bs4 import BeautifulSoup

    from recipe_crawler.crawler.handlers import extract_recipe
    from recipe_crawler.scraper.fetcher import FetchError, HttpFetcher
    from recipe_crawler.scraper.models import RecipeRecord

    typer.echo(f"[scrape] Fetching {url!r} …", err=True)
    try:
        with HttpFetcher() as fetcher:
            raw = fetcher.fetch(url)
    except FetchError as exc:
        typer.echo(f"[scrape] ✗ {exc}", err=True)
        raise typer.Exit(1)

    fields = extract_recipe(BeautifulSoup(raw.html, "html.parser"), raw.url)
    if not fields.has_content():
        typer.echo("[scrape] No recipe found on this page.", err=True)
        raise typer.Exit(1)

    record = RecipeRecord.from_fields(
        fields, source_url=url, scraped_at=datetime.now(timezone.utc).isoformat()
    )
    typer.echo(json.dumps(record.to_item(), indent=2, ensure_ascii=False))


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Port."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("recipe_crawler.api.app:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
