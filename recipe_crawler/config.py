"""Centralised settings for the recipe crawler.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

Per-run options (seed query, start URLs, caps) live on :class:`RunConfig`,
which takes its defaults from ``settings``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("RECIPE_WORKSPACE", Path.home() / ".recipe_crawler")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "recipes.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Target site
    # ------------------------------------------------------------------
    base_url: str = field(
        default_factory=lambda: os.environ.get(
            "RECIPE_BASE_URL", "https://www.allrecipes.com"
        )
    )
    default_query: str = field(
        default_factory=lambda: os.environ.get("DEFAULT_QUERY", "Chicken")
    )

    # ------------------------------------------------------------------
    # Crawl bounds
    # ------------------------------------------------------------------
    max_records: int = field(
        default_factory=lambda: int(os.environ.get("MAX_RECORDS", "50"))
    )
    max_list_pages: int = field(
        default_factory=lambda: int(os.environ.get("MAX_LIST_PAGES", "10"))
    )
    max_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONCURRENCY", "5"))
    )
    always_advance_pagination: bool = field(
        default_factory=lambda: _env_bool("ALWAYS_ADVANCE_PAGINATION", "true")
    )

    # ------------------------------------------------------------------
    # HTTP fetcher
    # ------------------------------------------------------------------
    max_request_retries: int = field(
        default_factory=lambda: int(os.environ.get("MAX_REQUEST_RETRIES", "3"))
    )
    retry_backoff: float = field(
        default_factory=lambda: float(os.environ.get("RETRY_BACKOFF", "0.5"))
    )
    rate_limit_delay: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_DELAY", "0.0"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    proxy_url: Optional[str] = field(
        default_factory=lambda: os.environ.get("PROXY_URL") or None
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "USER_AGENT",
            "Mozilla/5.0 (compatible; RecipeCrawler/1.0; +https://github.com/recipe-crawler)",
        )
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from recipe_crawler.config import settings
settings = Settings()


# ---------------------------------------------------------------------------
# Per-run configuration
# ---------------------------------------------------------------------------

def _coerce_max_records(value: Any) -> Optional[int]:
    """Positive int, or ``None`` (unbounded) for anything non-numeric."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return max(1, int(number))


def _coerce_max_pages(value: Any, default: int = 10) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number or number in (float("inf"), float("-inf")):
        return default
    return max(1, int(number))


@dataclass
class RunConfig:
    """Options for a single crawl run."""

    seed_query: str = field(default_factory=lambda: settings.default_query)
    seed_urls: list[str] = field(default_factory=list)
    max_records: Optional[int] = field(default_factory=lambda: settings.max_records)
    max_list_pages: int = field(default_factory=lambda: settings.max_list_pages)
    max_concurrency: int = field(default_factory=lambda: settings.max_concurrency)
    proxy_url: Optional[str] = field(default_factory=lambda: settings.proxy_url)

    def start_urls(self) -> list[str]:
        """Return the seed URLs, or a search URL built from ``seed_query``."""
        if self.seed_urls:
            return list(self.seed_urls)
        return [build_search_url(self.seed_query)]

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> RunConfig:
        """Build a config from an actor-style input mapping.

        Recognised keys: ``query``, ``results_wanted``, ``max_pages``,
        ``startUrls`` (strings or ``{"url": ...}`` objects), ``proxyUrl`` and
        ``concurrency``.  Missing keys fall back to ``settings``.
        """
        seeds: list[str] = []
        for item in data.get("startUrls") or []:
            url = item if isinstance(item, str) else (item or {}).get("url")
            if url:
                seeds.append(str(url))

        config = cls(seed_urls=seeds)
        if "query" in data and data["query"] is not None:
            config.seed_query = str(data["query"])
        if "results_wanted" in data:
            config.max_records = _coerce_max_records(data["results_wanted"])
        if "max_pages" in data:
            config.max_list_pages = _coerce_max_pages(data["max_pages"])
        if data.get("concurrency"):
            config.max_concurrency = max(1, int(data["concurrency"]))
        if data.get("proxyUrl"):
            config.proxy_url = str(data["proxyUrl"])
        return config


def build_search_url(query: str, base_url: Optional[str] = None) -> str:
    """Return ``<base>/search?q=<query>`` (the query is trimmed)."""
    base = (base_url or settings.base_url).rstrip("/")
    query = str(query or "").strip()
    if not query:
        return f"{base}/search"
    return f"{base}/search?{urlencode({'q': query})}"
