"""HTTP fetching with bounded retries on transient failures."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict

import httpx
import structlog

from ..config import HttpConfig
from ..errors import FetchError
from .thread_pool import TokenSource


def _retry_after_seconds(value: str | None) -> float | None:
    """Parse a delta-seconds ``Retry-After`` header; HTTP-date values are ignored."""

    if not value:
        return None
    try:
        return max(0.0, float(value.strip()))
    except ValueError:
        return None


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper."""

    url: str
    status_code: int
    text: str
    headers: Dict[str, str]
    raw: httpx.Response | None = field(repr=False, default=None)


class Fetcher:
    """Execute GET requests over one shared, thread-safe httpx client."""

    def __init__(
        self,
        http_config: HttpConfig | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.http_config = http_config or HttpConfig()
        self.logger = logger or structlog.get_logger("exam_harvester.fetcher")
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=self.http_config.timeout,
            headers={"User-Agent": self.http_config.user_agent},
        )

    def close(self) -> None:
        self._client.close()

    def fetch(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        limiter: TokenSource | None = None,
    ) -> FetchResponse:
        """GET ``url``, retrying transient failures.

        The caller's token covers the first attempt; every retry backs off and then
        waits for a fresh token from ``limiter``.
        """

        max_attempts = self.http_config.retries + 1
        last_error: Exception | None = None
        status_code: int | None = None
        retry_after: float | None = None
        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                self._pause(attempt - 1, retry_after)
                if limiter is not None:
                    limiter.acquire()
            retry_after = None
            try:
                response = self._client.request(
                    method="GET",
                    url=url,
                    headers=headers,
                    timeout=self.http_config.timeout,
                )
            except httpx.HTTPError as exc:
                self.logger.warning("fetch_error", url=url, attempt=attempt, error=str(exc))
                last_error = exc
                continue
            status_code = response.status_code
            if self._is_failure(response):
                self.logger.warning("fetch_retryable_status", url=url, attempt=attempt, status=status_code)
                last_error = None
                retry_after = _retry_after_seconds(response.headers.get("Retry-After"))
                continue
            if status_code >= 400:
                raise FetchError(url, f"Unexpected status {status_code}", status_code=status_code)
            return FetchResponse(
                url=str(response.url),
                status_code=status_code,
                text=response.text,
                headers=dict(response.headers),
                raw=response,
            )
        raise FetchError(
            url, f"Fetch failed after {max_attempts} attempts", status_code=status_code
        ) from last_error

    def fetch_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        response = self.fetch(url, headers=headers)
        try:
            return json.loads(response.text)
        except ValueError as exc:
            raise FetchError(url, "Response is not valid JSON") from exc

    def _pause(self, retry_number: int, retry_after: float | None) -> None:
        delay = retry_after if retry_after is not None else self.http_config.backoff * retry_number
        delay = min(delay, self.http_config.max_backoff)
        if delay > 0:
            self.logger.debug("fetch_backoff", delay=delay, retry=retry_number)
            time.sleep(delay)

    @staticmethod
    def _is_failure(response: Any) -> bool:
        status_code = getattr(response, "status_code", 0)
        if status_code >= 500:
            return True
        if status_code in {401, 403, 429}:
            return True
        return False


__all__ = ["FetchResponse", "Fetcher"]
