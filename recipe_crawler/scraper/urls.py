"""URL helpers shared by the extractors and link discovery."""

from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qs, urlencode, urljoin, urlparse, urlunparse

from recipe_crawler.scraper.selectors import PAGE_PARAM, RECIPE_URL_PATTERN


def resolve_url(href: Optional[str], base_url: str) -> Optional[str]:
    """Absolute http(s) URL for *href*, or ``None`` when it cannot be resolved."""
    if not href or not href.strip():
        return None
    try:
        absolute = urljoin(base_url, href.strip())
        parsed = urlparse(absolute)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return absolute


def is_recipe_url(url: str) -> bool:
    """True when the path carries a numeric recipe id (``/recipe/12345``)."""
    try:
        path = urlparse(url).path
    except ValueError:
        return False
    return bool(RECIPE_URL_PATTERN.search(path))


def page_number(url: str) -> Optional[int]:
    """The integer ``page`` query parameter of *url*, if any."""
    try:
        values = parse_qs(urlparse(url).query).get(PAGE_PARAM)
    except ValueError:
        return None
    if not values:
        return None
    try:
        return int(values[0])
    except ValueError:
        return None


def with_page(url: str, number: int) -> str:
    """Return *url* with its ``page`` query parameter set to *number*."""
    parsed = urlparse(url)
    query = parse_qs(parsed.query, keep_blank_values=True)
    query[PAGE_PARAM] = [str(number)]
    return urlunparse(parsed._replace(query=urlencode(query, doseq=True), fragment=""))
