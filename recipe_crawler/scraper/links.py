"""Link discovery on listing pages: recipe detail links and the next page."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Tag

from recipe_crawler.scraper import selectors as sel
from recipe_crawler.scraper.models import normalize_url
from recipe_crawler.scraper.text import clean_text
from recipe_crawler.scraper.urls import is_recipe_url, page_number, resolve_url, with_page

# "next" as a word of its own, so "Next page" counts but "Next-Level Soup" does not.
_NEXT_WORD = re.compile(r"(?<![\w-])next(?![\w-])", re.IGNORECASE)


def _hrefs(anchors: Iterable[Tag], base_url: str) -> List[str]:
    urls: List[str] = []
    for anchor in anchors:
        absolute = resolve_url(anchor.get("href"), base_url)
        if absolute:
            urls.append(normalize_url(absolute))
    return urls


def find_recipe_links(soup: BeautifulSoup, base_url: str) -> List[str]:
    """Return deduplicated absolute recipe URLs in document order.

    All anchors are swept first, then the card containers; both feed the
    same dedup set.
    """
    seen: set[str] = set()
    links: List[str] = []
    sweeps = (
        soup.find_all("a", href=True),
        soup.select(sel.CARD_LINK_SELECTORS),
    )
    for anchors in sweeps:
        for url in _hrefs(anchors, base_url):
            if is_recipe_url(url) and url not in seen:
                seen.add(url)
                links.append(url)
    return links


def _label_says_next(element: Tag) -> bool:
    label = element.get("aria-label") or ""
    text = clean_text(element.get_text())
    return bool(_NEXT_WORD.search(label) or _NEXT_WORD.search(text))


def next_page_candidates(
    soup: BeautifulSoup,
    base_url: str,
    current_page: int,
    always_advance: bool = True,
) -> List[List[str]]:
    """Candidate sets in priority order, see :func:`find_next_page`."""
    synthesized = with_page(base_url, current_page + 1)

    rel_next = _hrefs(soup.select(sel.NEXT_REL_SELECTOR), base_url)
    site_next = _hrefs(soup.select(sel.NEXT_CONTROL_SELECTOR), base_url)

    labelled: List[str] = []
    for control in soup.find_all(["a", "button"]):
        if not _label_says_next(control):
            continue
        href = resolve_url(control.get("href"), base_url) if control.name == "a" else None
        labelled.append(normalize_url(href) if href else synthesized)

    numbered = [
        url
        for url in _hrefs(soup.find_all("a", href=True), base_url)
        if (page_number(url) or 0) > current_page
    ]

    fallback: List[str] = []
    if always_advance or soup.select_one(sel.PAGINATION_CONTAINER_SELECTOR) is not None:
        fallback = [synthesized]

    # A detail URL is never a listing page.
    return [
        [url for url in candidates if not is_recipe_url(url)]
        for candidates in (rel_next, site_next, labelled, numbered, fallback)
    ]


def find_next_page(
    soup: BeautifulSoup,
    base_url: str,
    current_page: int,
    always_advance: bool = True,
) -> Optional[str]:
    """Return the next listing page URL.

    Priority: ``rel="next"``, the site's pagination control, any control
    labelled "next", any link with a higher ``page`` parameter, and finally
    the current URL with ``page`` incremented.  With *always_advance* off,
    the last step only applies when the page shows a pagination container.
    """
    for candidates in next_page_candidates(soup, base_url, current_page, always_advance):
        if candidates:
            return candidates[0]
    return None
