"""Shared fixtures: canned HTML, a scripted fetcher and isolated config homes."""

from __future__ import annotations

import json
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterable

import pytest

from exam_harvester.config import ConfigLocator, ConfigRepository, HarvestConfig
from exam_harvester.engine.fetcher import FetchResponse
from exam_harvester.errors import FetchError

BASE_URL = "https://exams.example"


class ScriptedFetcher:
    """Stand-in for ``Fetcher`` answering from a url → body (or exception) mapping."""

    def __init__(self, pages: dict[str, Any] | None = None) -> None:
        self.pages: dict[str, Any] = dict(pages or {})
        self.calls: list[str] = []
        self.headers: dict[str, dict[str, str] | None] = {}
        self.closed = False
        self._lock = Lock()

    def fetch(self, url: str, headers: dict[str, str] | None = None, limiter: Any = None) -> FetchResponse:
        with self._lock:
            self.calls.append(url)
            self.headers[url] = headers
        body = self.pages.get(url)
        if body is None:
            raise FetchError(url, "Unexpected status 404", status_code=404)
        if isinstance(body, Exception):
            raise body
        if not isinstance(body, str):
            body = json.dumps(body)
        return FetchResponse(url=url, status_code=200, text=body, headers={})

    def fetch_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        return json.loads(self.fetch(url, headers=headers).text)

    def close(self) -> None:
        self.closed = True


class NullLimiter:
    def __init__(self) -> None:
        self.acquired = 0
        self.stopped = False
        self._lock = Lock()

    def acquire(self) -> None:
        with self._lock:
            self.acquired += 1

    def stop(self) -> None:
        self.stopped = True


def listing_html(links: Iterable[tuple[str, str]], pages: int | None = None) -> str:
    anchors = "".join(
        f'<div class="discussion-row"><a class="discussion-link" href="{href}">{text}</a></div>'
        for href, text in links
    )
    indicator = (
        f'<span class="discussion-list-page-indicator">Page <strong>1</strong> of <strong>{pages}</strong></span>'
        if pages
        else ""
    )
    return f"<html><body>{indicator}{anchors}</body></html>"


def question_html(
    title: str,
    body: str = "Which service fits?",
    choices: Iterable[str] = ("A. One", "B. Two"),
    answer: str = "B",
    timestamp: str = "Jan 1, 2024, 10:00 a.m.",
    comments: str = "",
    images: Iterable[str] = (),
) -> str:
    items = "".join(f'<li class="multi-choice-item">{choice}</li>' for choice in choices)
    imgs = "".join(f'<img src="{src}">' for src in images)
    return (
        "<html><body>"
        f"<h1>{title}</h1>"
        f'<div class="card-text"><p>{body}</p>{imgs}</div>'
        f"<ul>{items}</ul>"
        f'<span class="correct-answer">{answer}</span>'
        f'<div class="discussion-meta-data"><i>{timestamp}</i></div>'
        f'<div class="discussion-container">{comments}</div>'
        "</body></html>"
    )


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def make_listing() -> Callable[..., str]:
    return listing_html


@pytest.fixture
def make_question() -> Callable[..., str]:
    return question_html


@pytest.fixture
def scripted_fetcher() -> Callable[..., ScriptedFetcher]:
    def _builder(pages: dict[str, Any] | None = None) -> ScriptedFetcher:
        return ScriptedFetcher(pages)

    return _builder


@pytest.fixture
def null_limiters() -> tuple[list[NullLimiter], Callable[[str], NullLimiter]]:
    created: list[NullLimiter] = []

    def _factory(_name: str) -> NullLimiter:
        limiter = NullLimiter()
        created.append(limiter)
        return limiter

    return created, _factory


@pytest.fixture
def harvest_config() -> Callable[..., HarvestConfig]:
    def _builder(**overrides: Any) -> HarvestConfig:
        base: dict[str, Any] = {
            "base_url": BASE_URL,
            "concurrency": {"discovery": 3, "fetch": 4},
            "rate_limit": {"requests_per_second": 1000},
            "enable_progress_bar": False,
        }
        base.update(overrides)
        return HarvestConfig.model_validate(base)

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("EXAM_HARVESTER_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    yield ConfigRepository(locator)
