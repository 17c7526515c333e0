"""Bounded, rate-limited worker pool shared by the discovery and fetch stages."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Generic, Protocol, Sequence, TypeVar

import structlog

T = TypeVar("T")
R = TypeVar("R")


class TokenSource(Protocol):
    def acquire(self) -> None: ...


@dataclass(frozen=True, slots=True)
class CompletionEvent:
    """Published after each item finishes, successfully or not."""

    stage: str
    index: int
    completed: int
    total: int
    ok: bool


Observer = Callable[[CompletionEvent], None]


class BoundedFetcher(Generic[T, R]):
    """Run N independent work items with at most ``concurrency`` in flight.

    Every item waits for a token from the shared rate limiter before its worker
    runs. Results are index-aligned with the input; a worker that raises or
    returns ``None`` leaves ``None`` in its slot and never aborts the batch.
    """

    def __init__(
        self,
        concurrency: int,
        rate_limiter: TokenSource | None = None,
        name: str = "stage",
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.concurrency = concurrency
        self.rate_limiter = rate_limiter
        self.name = name
        self.logger = logger or structlog.get_logger("exam_harvester.pool").bind(stage=name)
        self._observers: list[Observer] = []
        self._completed = 0

    @property
    def completed(self) -> int:
        return self._completed

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def run(self, items: Sequence[T], worker: Callable[[T], R | None]) -> list[R | None]:
        total = len(items)
        self._completed = 0
        results: list[R | None] = [None] * total
        if not total:
            return results
        with ThreadPoolExecutor(
            max_workers=min(self.concurrency, total), thread_name_prefix=f"harvest-{self.name}"
        ) as executor:
            futures: dict[Future[R | None], int] = {
                executor.submit(self._invoke, worker, index, item): index
                for index, item in enumerate(items)
            }
            # Slots are written here, one per future, so workers never share data.
            for future in as_completed(futures):
                index = futures[future]
                results[index] = future.result()
                self._completed += 1
                self._notify(
                    CompletionEvent(
                        stage=self.name,
                        index=index,
                        completed=self._completed,
                        total=total,
                        ok=results[index] is not None,
                    )
                )
        return results

    def _invoke(self, worker: Callable[[T], R | None], index: int, item: T) -> R | None:
        if self.rate_limiter is not None:
            self.rate_limiter.acquire()
        try:
            return worker(item)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("item_failed", index=index, item=str(item), error=str(exc))
            return None

    def _notify(self, event: CompletionEvent) -> None:
        for observer in self._observers:
            try:
                observer(event)
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("observer_failed", error=str(exc))


__all__ = ["BoundedFetcher", "CompletionEvent", "Observer", "TokenSource"]
