"""Discovery stage: enumerate listing pages and collect candidate question links."""

from __future__ import annotations

from typing import Callable, Iterable

import structlog

from ..errors import DiscoveryError, FetchError
from .fetcher import Fetcher
from .models import DiscoveryResult
from .parser import Parser
from .ratelimit import RateLimiter
from .thread_pool import BoundedFetcher, Observer, TokenSource

LimiterFactory = Callable[[str], TokenSource]


def default_limiter_factory(requests_per_second: float) -> LimiterFactory:
    return lambda name: RateLimiter(requests_per_second, name=name)


def stop_limiter(limiter: TokenSource) -> None:
    stop = getattr(limiter, "stop", None)
    if callable(stop):
        stop()


class PageDiscoverer:
    """Scan every listing page of a provider for discussion links matching a filter."""

    def __init__(
        self,
        fetcher: Fetcher,
        parser: Parser,
        base_url: str,
        concurrency: int,
        limiter_factory: LimiterFactory,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.parser = parser
        self.base_url = base_url.rstrip("/")
        self.concurrency = concurrency
        self.limiter_factory = limiter_factory
        self.logger = logger or structlog.get_logger("exam_harvester.discovery")

    def listing_url(self, provider: str, page: int | None = None) -> str:
        root = f"{self.base_url}/discussions/{provider}/"
        return root if page is None else f"{root}{page}"

    def probe_page_count(self, provider: str, limiter: TokenSource | None = None) -> int:
        """Fetch the listing root once and read the page count from its pagination control."""

        url = self.listing_url(provider)
        if limiter is not None:
            limiter.acquire()
        try:
            response = self.fetcher.fetch(url, limiter=limiter)
        except FetchError as exc:
            raise DiscoveryError(f"Cannot reach listing for provider '{provider}': {exc}") from exc
        pages = self.parser.parse_page_count(response.text)
        if not pages:
            raise DiscoveryError(f"Cannot determine page count for provider '{provider}' at {url}")
        self.logger.info("page_count_probed", provider=provider, pages=pages)
        return pages

    def scan(
        self,
        provider: str,
        exam_filter: str,
        pages: int,
        observers: Iterable[Observer] = (),
        limiter: TokenSource | None = None,
    ) -> list[str]:
        """Fetch pages ``1..pages`` concurrently and flatten the matching links.

        Without an explicit ``limiter`` a fresh one is created for this scan and
        stopped afterwards.
        """

        if pages < 1:
            return []
        owned = limiter is None
        if limiter is None:
            limiter = self.limiter_factory("discovery")
        pool: BoundedFetcher[int, list[str]] = BoundedFetcher(
            self.concurrency, limiter, name="discovery"
        )
        for observer in observers:
            pool.subscribe(observer)

        def scrape_page(page: int) -> list[str]:
            response = self.fetcher.fetch(self.listing_url(provider, page), limiter=limiter)
            return self.parser.parse_discussion_links(response.text, exam_filter)

        try:
            per_page = pool.run(list(range(1, pages + 1)), scrape_page)
        finally:
            if owned:
                stop_limiter(limiter)
        links = [link for page_links in per_page if page_links for link in page_links]
        missing = sum(1 for page_links in per_page if page_links is None)
        self.logger.info(
            "stage_complete",
            stage="discovery",
            provider=provider,
            pages=pages,
            failed_pages=missing,
            links=len(links),
        )
        return links

    def discover(
        self, provider: str, exam_filter: str = "", observers: Iterable[Observer] = ()
    ) -> DiscoveryResult:
        """Read the page count, then scan every page; one limiter gates both steps."""

        limiter = self.limiter_factory("discovery")
        try:
            pages = self.probe_page_count(provider, limiter)
            links = self.scan(provider, exam_filter, pages, observers, limiter=limiter)
        finally:
            stop_limiter(limiter)
        return DiscoveryResult(pages=pages, links=links)


__all__ = ["LimiterFactory", "PageDiscoverer", "default_limiter_factory", "stop_limiter"]
