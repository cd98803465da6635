"""Tests for the scraper layer — fetching, text normalisation, link discovery.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made during ``HttpFetcher`` tests.
- ``time.sleep`` is patched so retry backoff does not slow the suite down.
"""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest
import respx
from bs4 import BeautifulSoup

from recipe_crawler.scraper.fetcher import FetchError, HttpFetcher
from recipe_crawler.scraper.links import find_next_page, find_recipe_links
from recipe_crawler.scraper.models import CrawlTask, Label, RawPage
from recipe_crawler.scraper.text import clean_text
from recipe_crawler.scraper.urls import is_recipe_url, page_number, resolve_url, with_page


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_BASE = "https://www.allrecipes.com"
_SEARCH_URL = f"{_BASE}/search?q=soup"

_LISTING_HTML = """\
<!DOCTYPE html>
<html>
<head><title>Soup recipes</title></head>
<body>
  <h1>Results for soup</h1>
  <a href="/recipe/100/tomato-soup/">Tomato Soup</a>
  <a href="https://www.allrecipes.com/recipe/200/onion-soup/">Onion Soup</a>
  <a href="/recipe/100/tomato-soup/#reviews">Tomato Soup reviews</a>
  <a href="/article/soup-tips/">Soup tips</a>
  <div class="mntl-card-list-items">
    <a href="/recipe/300/leek-soup/">Leek Soup</a>
    <a href="/recipe/200/onion-soup/">Onion Soup again</a>
  </div>
</body>
</html>
"""


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


# ---------------------------------------------------------------------------
# Text normaliser
# ---------------------------------------------------------------------------

class TestCleanText:
    def test_none_returns_empty_string(self) -> None:
        assert clean_text(None) == ""

    def test_empty_returns_empty_string(self) -> None:
        assert clean_text("   \n\t ") == ""

    def test_collapses_whitespace(self) -> None:
        assert clean_text("  Preheat \n\n the   oven  ") == "Preheat the oven"

    def test_strips_markup(self) -> None:
        assert clean_text("<p>Stir <b>well</b>.</p>") == "Stir well."

    def test_drops_script_style_and_iframe(self) -> None:
        html = (
            "<div>Keep<script>alert('x')</script> this"
            "<style>.a{color:red}</style><iframe>frame</iframe></div>"
        )
        assert clean_text(html) == "Keep this"

    def test_unescapes_entities(self) -> None:
        assert clean_text("Mac &amp; cheese") == "Mac & cheese"

    def test_broken_markup_does_not_raise(self) -> None:
        assert clean_text("<div><p>Unclosed <b>tags") == "Unclosed tags"

    def test_numbers_are_stringified(self) -> None:
        assert clean_text(4) == "4"

    def test_containers_give_empty_string(self) -> None:
        assert clean_text(["Soup"]) == ""
        assert clean_text({"text": "1 cup"}) == ""


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

class TestUrls:
    def test_resolve_relative(self) -> None:
        assert resolve_url("/img/a.jpg", _SEARCH_URL) == f"{_BASE}/img/a.jpg"

    def test_resolve_blank_is_none(self) -> None:
        assert resolve_url("  ", _SEARCH_URL) is None

    def test_resolve_malformed_is_none(self) -> None:
        assert resolve_url("http://[::1", _SEARCH_URL) is None

    def test_resolve_non_http_is_none(self) -> None:
        assert resolve_url("javascript:void(0)", _SEARCH_URL) is None

    def test_is_recipe_url(self) -> None:
        assert is_recipe_url(f"{_BASE}/recipe/12345/chili/")
        assert not is_recipe_url(f"{_BASE}/recipes/78/main-dish/")
        assert not is_recipe_url(_SEARCH_URL)

    def test_page_number(self) -> None:
        assert page_number(f"{_SEARCH_URL}&page=3") == 3
        assert page_number(_SEARCH_URL) is None
        assert page_number(f"{_SEARCH_URL}&page=abc") is None

    def test_with_page_keeps_query(self) -> None:
        url = with_page(_SEARCH_URL, 2)
        assert url.startswith(f"{_BASE}/search?")
        assert "q=soup" in url
        assert page_number(url) == 2

    def test_with_page_replaces_existing(self) -> None:
        assert page_number(with_page(f"{_SEARCH_URL}&page=4", 5)) == 5


# ---------------------------------------------------------------------------
# Crawl task identity
# ---------------------------------------------------------------------------

class TestCrawlTask:
    def test_key_strips_fragment(self) -> None:
        task = CrawlTask(f"{_BASE}/recipe/1/a/#comments", Label.RECIPE)
        assert task.key == f"{_BASE}/recipe/1/a/"

    def test_defaults(self) -> None:
        task = CrawlTask(_SEARCH_URL)
        assert task.label is Label.LIST
        assert task.page_number == 1

    def test_is_frozen(self) -> None:
        task = CrawlTask(_SEARCH_URL)
        with pytest.raises(AttributeError):
            task.page_number = 2  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Link discovery
# ---------------------------------------------------------------------------

class TestFindRecipeLinks:
    def test_finds_absolute_deduplicated_links_in_order(self) -> None:
        links = find_recipe_links(_soup(_LISTING_HTML), _SEARCH_URL)
        assert links == [
            f"{_BASE}/recipe/100/tomato-soup/",
            f"{_BASE}/recipe/200/onion-soup/",
            f"{_BASE}/recipe/300/leek-soup/",
        ]

    def test_ignores_non_recipe_links(self) -> None:
        links = find_recipe_links(_soup(_LISTING_HTML), _SEARCH_URL)
        assert not any("/article/" in link for link in links)

    def test_no_links_returns_empty(self) -> None:
        assert find_recipe_links(_soup("<html><body>none</body></html>"), _SEARCH_URL) == []

    def test_idempotent(self) -> None:
        soup = _soup(_LISTING_HTML)
        assert find_recipe_links(soup, _SEARCH_URL) == find_recipe_links(soup, _SEARCH_URL)


class TestFindNextPage:
    def test_rel_next_wins(self) -> None:
        html = (
            '<a rel="next" href="/search?q=soup&page=2">2</a>'
            '<a class="pagination__next" href="/search?q=soup&page=9">Next</a>'
        )
        assert find_next_page(_soup(html), _SEARCH_URL, 1) == f"{_BASE}/search?q=soup&page=2"

    def test_site_control_before_labels(self) -> None:
        html = (
            '<a aria-label="Next page" href="/search?q=soup&page=7">›</a>'
            '<div class="pagination__next"><a href="/search?q=soup&page=3">›</a></div>'
        )
        assert find_next_page(_soup(html), _SEARCH_URL, 1) == f"{_BASE}/search?q=soup&page=3"

    def test_label_containing_next(self) -> None:
        html = '<a aria-label="Go to NEXT page" href="/search?q=soup&page=2">›</a>'
        assert find_next_page(_soup(html), _SEARCH_URL, 1) == f"{_BASE}/search?q=soup&page=2"

    def test_next_button_without_href_synthesizes(self) -> None:
        html = '<button aria-label="next">›</button>'
        assert page_number(find_next_page(_soup(html), _SEARCH_URL, 1)) == 2

    def test_higher_page_parameter(self) -> None:
        html = (
            '<a href="/search?q=soup&page=1">1</a>'
            '<a href="/search?q=soup&page=4">4</a>'
        )
        assert find_next_page(_soup(html), _SEARCH_URL, 3) == f"{_BASE}/search?q=soup&page=4"

    def test_synthesized_fallback(self) -> None:
        next_url = find_next_page(_soup("<p>nothing</p>"), f"{_SEARCH_URL}&page=2", 2)
        assert page_number(next_url) == 3
        assert "q=soup" in next_url

    def test_fallback_can_require_pagination(self) -> None:
        soup = _soup("<p>nothing</p>")
        assert find_next_page(soup, _SEARCH_URL, 1, always_advance=False) is None

    def test_fallback_with_pagination_container(self) -> None:
        soup = _soup('<nav class="pagination"><span>1</span></nav>')
        assert page_number(find_next_page(soup, _SEARCH_URL, 1, always_advance=False)) == 2

    def test_recipe_card_mentioning_next_is_not_a_page(self) -> None:
        html = (
            '<a href="/recipe/1/next-level-soup/">Next-Level Soup</a>'
            '<a href="/search?q=soup&page=2">2</a>'
        )
        assert find_next_page(_soup(html), _SEARCH_URL, 1) == f"{_BASE}/search?q=soup&page=2"

    def test_next_must_be_a_whole_word(self) -> None:
        html = '<a href="/search?q=soup&sort=new">Nextdoor favourites</a>'
        assert page_number(find_next_page(_soup(html), _SEARCH_URL, 1)) == 2

    def test_rel_next_to_a_recipe_is_ignored(self) -> None:
        html = '<link rel="next" href="/recipe/5/pho/">'
        assert page_number(find_next_page(_soup(html), _SEARCH_URL, 1)) == 2


# ---------------------------------------------------------------------------
# HttpFetcher
# ---------------------------------------------------------------------------

class TestHttpFetcher:
    def test_successful_fetch_returns_raw_page(self) -> None:
        with respx.mock:
            respx.get(_SEARCH_URL).mock(return_value=httpx.Response(200, text=_LISTING_HTML))
            with HttpFetcher(max_retries=0) as fetcher:
                raw = fetcher.fetch(_SEARCH_URL)

        assert isinstance(raw, RawPage)
        assert raw.url == _SEARCH_URL
        assert raw.status_code == 200
        assert "<title>Soup recipes</title>" in raw.html

    def test_not_found_raises_without_retry(self) -> None:
        with respx.mock:
            route = respx.get(f"{_BASE}/missing").mock(return_value=httpx.Response(404))
            with HttpFetcher(max_retries=3, backoff=0) as fetcher:
                with pytest.raises(FetchError) as excinfo:
                    fetcher.fetch(f"{_BASE}/missing")

        assert excinfo.value.status_code == 404
        assert route.call_count == 1

    def test_server_error_is_retried(self) -> None:
        with respx.mock:
            route = respx.get(_SEARCH_URL).mock(
                side_effect=[
                    httpx.Response(503),
                    httpx.Response(200, text=_LISTING_HTML),
                ]
            )
            with patch("recipe_crawler.scraper.fetcher.time.sleep"):
                with HttpFetcher(max_retries=2, backoff=0.1) as fetcher:
                    raw = fetcher.fetch(_SEARCH_URL)

        assert raw.status_code == 200
        assert route.call_count == 2

    def test_gives_up_after_max_retries(self) -> None:
        with respx.mock:
            route = respx.get(_SEARCH_URL).mock(side_effect=httpx.ConnectError("boom"))
            with patch("recipe_crawler.scraper.fetcher.time.sleep"):
                with HttpFetcher(max_retries=2, backoff=0.1) as fetcher:
                    with pytest.raises(FetchError):
                        fetcher.fetch(_SEARCH_URL)

        assert route.call_count == 3

    def test_uses_supplied_client_without_closing_it(self) -> None:
        with respx.mock:
            respx.get(_SEARCH_URL).mock(return_value=httpx.Response(200, text="ok"))
            client = httpx.Client()
            with HttpFetcher(client=client, max_retries=0) as fetcher:
                fetcher.fetch(_SEARCH_URL)
            assert not client.is_closed
            client.close()
