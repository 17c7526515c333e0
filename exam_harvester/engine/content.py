"""Fetch stage: retrieve and parse one question per ordered link."""

from __future__ import annotations

from typing import Iterable, Sequence, TypeVar

import structlog

from .discovery import LimiterFactory, stop_limiter
from .fetcher import Fetcher
from .models import QuestionRecord
from .parser import Parser, absolute_url
from .thread_pool import BoundedFetcher, Observer, TokenSource

T = TypeVar("T")


def compact(slots: Iterable[T | None]) -> list[T]:
    """Drop absent entries, keeping survivors in their relative order."""

    return [entry for entry in slots if entry is not None]


class ContentFetcher:
    """Turn an ordered link list into index-aligned question records."""

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
        self.logger = logger or structlog.get_logger("exam_harvester.content")

    def fetch_one(self, link: str, limiter: TokenSource | None = None) -> QuestionRecord:
        url = absolute_url(self.base_url, link)
        response = self.fetcher.fetch(url, limiter=limiter)
        return self.parser.parse_question(response.text, url, self.base_url)

    def fetch_all(
        self, links: Sequence[str], observers: Iterable[Observer] = ()
    ) -> list[QuestionRecord | None]:
        """Return one slot per link; failed links leave ``None`` in their slot."""

        links = list(links)
        if not links:
            return []
        limiter = self.limiter_factory("fetch")
        pool: BoundedFetcher[str, QuestionRecord] = BoundedFetcher(
            self.concurrency, limiter, name="fetch"
        )
        for observer in observers:
            pool.subscribe(observer)
        try:
            slots = pool.run(links, lambda link: self.fetch_one(link, limiter))
        finally:
            stop_limiter(limiter)
        self.logger.info(
            "stage_complete",
            stage="fetch",
            scheduled=len(slots),
            failed=sum(1 for slot in slots if slot is None),
        )
        return slots

    def harvest(
        self, links: Sequence[str], observers: Iterable[Observer] = ()
    ) -> list[QuestionRecord]:
        return compact(self.fetch_all(links, observers))


__all__ = ["ContentFetcher", "compact"]
