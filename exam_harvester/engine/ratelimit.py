"""Process-wide token source gating how often a network call may proceed."""

from __future__ import annotations

from threading import Lock

import structlog
from pyrate_limiter import Duration, Limiter, Rate
from pyrate_limiter.buckets import InMemoryBucket

_MILLISECONDS_PER_SECOND = 1000
# Block for up to a year; acquisition delays, it never gives up.
_BLOCKING_MAX_DELAY_MS = Duration.DAY.value * 365
_BUFFER_MS = 10


class RateLimiter:
    """Grant at most ``requests_per_second`` acquisitions per second across all threads.

    One token is released every ``1 / requests_per_second`` seconds, so the burst
    never exceeds a single token. ``acquire`` only ever delays. The underlying
    bucket and its leak thread are created on the first ``acquire``.
    """

    def __init__(self, requests_per_second: float, name: str = "harvest") -> None:
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be > 0")
        self.requests_per_second = requests_per_second
        self.name = name
        self.interval_ms = max(1, round(_MILLISECONDS_PER_SECOND / requests_per_second))
        self._bucket: InMemoryBucket | None = None
        self._limiter: Limiter | None = None
        self._stopped = False
        self._lock = Lock()
        self._logger = structlog.get_logger("exam_harvester.ratelimit").bind(limiter=name)

    def _ensure_limiter(self) -> Limiter:
        with self._lock:
            if self._stopped:
                raise RuntimeError(f"Rate limiter '{self.name}' has been stopped")
            if self._limiter is None:
                self._bucket = InMemoryBucket([Rate(1, self.interval_ms)])
                self._limiter = Limiter(
                    self._bucket,
                    raise_when_fail=False,
                    max_delay=_BLOCKING_MAX_DELAY_MS,
                    retry_until_max_delay=True,
                    buffer_ms=_BUFFER_MS,
                )
            return self._limiter

    def acquire(self) -> None:
        limiter = self._ensure_limiter()
        while not limiter.try_acquire(self.name, weight=1):
            self._logger.debug("token_retry")

    def stop(self) -> None:
        """Release the bucket's background leak thread, if one was ever started."""

        with self._lock:
            self._stopped = True
            limiter, self._limiter = self._limiter, None
            bucket, self._bucket = self._bucket, None
        if limiter is None or bucket is None:
            return
        dispose = getattr(limiter, "dispose", None)
        if callable(dispose):
            try:
                dispose(bucket)
            except (KeyError, ValueError, AttributeError) as exc:
                self._logger.debug("limiter_dispose_failed", error=str(exc))

    @property
    def started(self) -> bool:
        return self._limiter is not None

    @property
    def stopped(self) -> bool:
        return self._stopped

    def __enter__(self) -> "RateLimiter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


__all__ = ["RateLimiter"]
