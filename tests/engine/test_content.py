from __future__ import annotations

from threading import Lock

import httpx
import pytest

from exam_harvester.config import HttpConfig
from exam_harvester.engine.content import ContentFetcher, compact
from exam_harvester.engine.fetcher import Fetcher
from exam_harvester.engine.parser import Parser
from exam_harvester.errors import FetchError


def test_failed_link_leaves_gap_and_compaction_keeps_order(
    scripted_fetcher, null_limiters, make_question, base_url
) -> None:
    created, factory = null_limiters
    links = ["/d/question-1", "/d/question-2", "/d/question-3"]
    fetcher = scripted_fetcher(
        {
            f"{base_url}/d/question-1": make_question("Question one"),
            f"{base_url}/d/question-2": FetchError(f"{base_url}/d/question-2", "timed out"),
            f"{base_url}/d/question-3": make_question("Question three"),
        }
    )
    content = ContentFetcher(fetcher, Parser(), base_url, 3, factory)

    slots = content.fetch_all(links)
    assert len(slots) == 3
    assert slots[1] is None
    assert [slot.title for slot in compact(slots)] == ["Question one", "Question three"]
    assert slots[0].link == f"{base_url}/d/question-1"
    assert created[0].stopped

    records = content.harvest(links)
    assert [record.title for record in records] == ["Question one", "Question three"]


def test_unparseable_page_is_skipped(scripted_fetcher, null_limiters, make_question, base_url) -> None:
    _, factory = null_limiters
    fetcher = scripted_fetcher(
        {
            f"{base_url}/d/question-1": "<html><body><p>removed</p></body></html>",
            "https://mirror.example/d/question-2": make_question("Absolute link"),
        }
    )
    content = ContentFetcher(fetcher, Parser(), base_url, 2, factory)
    records = content.harvest(["/d/question-1", "https://mirror.example/d/question-2"])
    assert [record.link for record in records] == ["https://mirror.example/d/question-2"]


def test_empty_link_list(scripted_fetcher, null_limiters, base_url) -> None:
    created, factory = null_limiters
    content = ContentFetcher(scripted_fetcher(), Parser(), base_url, 2, factory)
    assert content.fetch_all([]) == []
    assert compact([None, None]) == []
    assert created == []


def test_retried_requests_are_rate_gated_like_first_attempts(
    monkeypatch: pytest.MonkeyPatch, null_limiters, base_url
) -> None:
    created, factory = null_limiters
    fetcher = Fetcher(HttpConfig(retries=2, backoff=0))
    requests: list[str] = []
    lock = Lock()

    def throttled(**kwargs):
        with lock:
            requests.append(kwargs["url"])
        return httpx.Response(429, request=httpx.Request("GET", kwargs["url"]), text="slow down")

    monkeypatch.setattr(fetcher._client, "request", throttled)
    content = ContentFetcher(fetcher, Parser(), base_url, 4, factory)

    slots = content.fetch_all([f"/d/question-{n}" for n in range(1, 5)])
    fetcher.close()

    assert slots == [None, None, None, None]
    assert len(requests) == 12
    assert created[0].acquired == len(requests)
