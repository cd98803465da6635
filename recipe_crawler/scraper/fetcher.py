"""HTTP fetcher with retries, backoff and optional proxying.

The crawl core only needs ``fetch(url) -> RawPage`` raising
:class:`FetchError` on failure; everything about transport lives here.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Protocol

import httpx

from recipe_crawler.config import settings
from recipe_crawler.scraper.models import RawPage

logger = logging.getLogger(__name__)

# Client errors worth retrying; every other 4xx is final.
_RETRYABLE_STATUS = {408, 425, 429}


class FetchError(Exception):
    """Raised when a URL could not be fetched after all retries."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status_code = status_code


class Fetcher(Protocol):
    def fetch(self, url: str) -> RawPage: ...


def _is_retryable(exc: httpx.HTTPError) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        return code >= 500 or code in _RETRYABLE_STATUS
    return isinstance(exc, httpx.TransportError)


class HttpFetcher:
    """Thread-safe fetcher sharing one ``httpx.Client`` across workers.

    Usage::

        with HttpFetcher() as fetcher:
            page = fetcher.fetch("https://www.allrecipes.com/search?q=soup")
    """

    def __init__(
        self,
        proxy_url: Optional[str] = None,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
        backoff: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.max_retries = settings.max_request_retries if max_retries is None else max_retries
        self.backoff = settings.retry_backoff if backoff is None else backoff
        self._owns_client = client is None
        self._client = client or httpx.Client(
            headers={"User-Agent": settings.user_agent},
            timeout=settings.request_timeout if timeout is None else timeout,
            follow_redirects=True,
            proxy=proxy_url or settings.proxy_url,
        )

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fetch(self, url: str) -> RawPage:
        """Fetch *url* and return a :class:`RawPage`.

        Transport errors, 5xx and throttling responses are retried up to
        ``max_retries`` times with exponential backoff.

        Raises:
            FetchError: If the request still fails after all retries.
        """
        attempt = 0
        while True:
            if settings.rate_limit_delay:
                time.sleep(settings.rate_limit_delay)
            try:
                response = self._client.get(url)
                response.raise_for_status()
                return RawPage(url=str(response.url), html=response.text, status_code=response.status_code)
            except httpx.HTTPError as exc:
                status = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
                if attempt >= self.max_retries or not _is_retryable(exc):
                    raise FetchError(url, str(exc) or type(exc).__name__, status) from exc
                delay = self.backoff * (2 ** attempt)
                attempt += 1
                logger.debug(
                    "[FETCH] Retry %d/%d for %s in %.2fs (%s)",
                    attempt, self.max_retries, url, delay, exc,
                )
                if delay:
                    time.sleep(delay)
