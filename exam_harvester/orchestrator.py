"""Pipeline wiring cache probe, discovery, dedup/order and fetch into one run."""

from __future__ import annotations

import time
from typing import Callable, Iterable, Protocol, TypeVar

import structlog

from .config import HarvestConfig
from .engine import (
    ContentFetcher,
    Fetcher,
    GitHubCacheBackend,
    HarvestResult,
    LimiterFactory,
    LinkSet,
    Observer,
    PageDiscoverer,
    Parser,
    QuestionRecord,
    RunSummary,
    default_limiter_factory,
)
from .engine.thread_pool import CompletionEvent

T = TypeVar("T")


class CacheProbe(Protocol):
    def lookup(self, provider: str, exam_filter: str, token: str | None = None) -> list[QuestionRecord]: ...


class StageProgress(Protocol):
    def start(self, total: int | None) -> None: ...

    def observe(self, event: CompletionEvent) -> None: ...

    def close(self) -> None: ...


ProgressFactory = Callable[[str], StageProgress]


class Pipeline:
    """Central coordinator: CacheProbe → (on miss) discovery → LinkSet → content fetch.

    Stages are joined, never overlapped. The cache branch is decided once per run.
    """

    def __init__(
        self,
        config: HarvestConfig,
        fetcher: Fetcher | None = None,
        parser: Parser | None = None,
        cache_backend: CacheProbe | None = None,
        limiter_factory: LimiterFactory | None = None,
        progress_factory: ProgressFactory | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or structlog.get_logger("exam_harvester.pipeline")
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher(config.http)
        self.parser = parser or Parser()
        self.cache_backend = cache_backend or GitHubCacheBackend(self.fetcher, config.cache)
        self.limiter_factory = limiter_factory or default_limiter_factory(
            config.rate_limit.requests_per_second
        )
        self.progress_factory = progress_factory
        self.linkset = LinkSet()
        self.discoverer = PageDiscoverer(
            self.fetcher,
            self.parser,
            config.base_url,
            config.concurrency.discovery,
            self.limiter_factory,
        )
        self.content = ContentFetcher(
            self.fetcher,
            self.parser,
            config.base_url,
            config.concurrency.fetch,
            self.limiter_factory,
        )

    # ------------------------------------------------------------------
    def run(
        self,
        provider: str,
        exam_filter: str = "",
        use_cache: bool = True,
        token: str | None = None,
    ) -> HarvestResult:
        started = time.monotonic()
        log = self.logger.bind(provider=provider, exam_filter=exam_filter)

        if use_cache and self.config.cache.enabled:
            cached = self.cache_backend.lookup(provider, exam_filter, token)
            if cached:
                summary = RunSummary(
                    provider=provider,
                    exam_filter=exam_filter,
                    origin="cache",
                    unique_links=len(cached),
                    scheduled=len(cached),
                    produced=len(cached),
                    elapsed=time.monotonic() - started,
                )
                log.info("run_complete", origin="cache", produced=len(cached))
                return HarvestResult(records=cached, summary=summary)

        # The page count is only known once discovery has read the listing root.
        discovery = self._staged(
            "discovery",
            None,
            lambda observers: self.discoverer.discover(provider, exam_filter, observers),
        )
        pages, discovered = discovery.pages, discovery.links
        ordered = self.linkset.normalize(discovered)
        summary = RunSummary(
            provider=provider,
            exam_filter=exam_filter,
            origin="live",
            pages=pages,
            discovered_links=len(discovered),
            unique_links=len(ordered),
        )
        if not ordered:
            summary.elapsed = time.monotonic() - started
            log.warning("no_links_found", pages=pages)
            return HarvestResult(records=[], summary=summary)

        records = self._staged(
            "fetch", len(ordered), lambda observers: self.content.harvest(ordered, observers)
        )
        summary.scheduled = len(ordered)
        summary.produced = len(records)
        summary.elapsed = time.monotonic() - started
        log.info(
            "run_complete",
            origin="live",
            pages=pages,
            unique_links=summary.unique_links,
            produced=summary.produced,
            failed=summary.failed,
        )
        return HarvestResult(records=records, summary=summary)

    def list_exams(self, provider: str) -> list[str]:
        url = f"{self.config.base_url}/exams/{provider}/"
        response = self.fetcher.fetch(url)
        exams = self.parser.parse_exam_links(response.text, provider, self.config.base_url)
        self.logger.info("exams_listed", provider=provider, exams=len(exams))
        return exams

    def close(self) -> None:
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self) -> "Pipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    def _staged(self, stage: str, total: int | None, call: Callable[[Iterable[Observer]], T]) -> T:
        if self.progress_factory is None:
            return call(())
        reporter = self.progress_factory(stage)
        reporter.start(total)
        try:
            return call((reporter.observe,))
        finally:
            reporter.close()


__all__ = ["CacheProbe", "Pipeline", "ProgressFactory", "StageProgress"]
