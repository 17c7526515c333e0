"""Cache probe backed by pre-extracted exam snapshots on the GitHub contents API."""

from __future__ import annotations

import itertools
from typing import Any, Iterator
from urllib.parse import quote

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..config import CacheConfig
from ..errors import CacheError, FetchError
from .fetcher import Fetcher
from .models import QuestionRecord
from .parser import clean_text


class GitHubContent(BaseModel):
    """The subset of a contents API entry the probe relies on."""

    model_config = ConfigDict(extra="ignore")

    download_url: str


class CachedComment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    poster: str = ""
    content: str = ""


class CachedQuestion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str
    question_text: str = ""
    choices: dict[str, str] = Field(default_factory=dict)
    answer: str = ""
    timestamp: str = ""
    discussion: list[CachedComment] = Field(default_factory=list)
    question_images: list[str] = Field(default_factory=list)


class CachedPageProps(BaseModel):
    model_config = ConfigDict(extra="ignore")

    questions: list[CachedQuestion]


class CachedExam(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    page_props: CachedPageProps = Field(alias="pageProps")


def exam_slug(exam_filter: str) -> str:
    return "-".join(exam_filter.strip().lower().split())


def decode_content(payload: Any) -> GitHubContent:
    try:
        return GitHubContent.model_validate(payload)
    except ValidationError as exc:
        raise CacheError(f"Contents API response lacks download_url: {exc}") from exc


def decode_exam(payload: Any) -> CachedExam:
    try:
        return CachedExam.model_validate(payload)
    except ValidationError as exc:
        raise CacheError(f"Cached exam lacks pageProps.questions: {exc}") from exc


def to_record(question: CachedQuestion, sequence: Iterator[int]) -> QuestionRecord:
    """Convert one cached question, numbering it from the run-scoped ``sequence``."""

    content = question.question_text
    if question.question_images:
        content += "\n" + "".join(f"\n![Exhibit]({image})" for image in question.question_images)
    comments = "".join(f"[{entry.poster}] {entry.content}\n" for entry in question.discussion)
    return QuestionRecord(
        title=f"Exam Question #{next(sequence)}",
        content=content,
        choices=tuple(f"{key}. {question.choices[key]}" for key in sorted(question.choices)),
        answer=question.answer,
        timestamp=question.timestamp,
        link=question.url,
        comments=clean_text(comments),
    )


class GitHubCacheBackend:
    """Look up a cached snapshot for ``provider`` + exam filter.

    Every failure is a cache miss: the probe returns an empty list and the caller
    falls back to live scraping.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        config: CacheConfig | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.config = config or CacheConfig()
        self.logger = logger or structlog.get_logger("exam_harvester.cache")

    def contents_url(self, provider: str, exam_filter: str) -> str:
        return self.config.contents_url.format(
            provider=quote(provider.strip().lower()), exam=quote(exam_slug(exam_filter))
        )

    def lookup(
        self, provider: str, exam_filter: str, token: str | None = None
    ) -> list[QuestionRecord]:
        if not exam_slug(exam_filter):
            self.logger.info("cache_skipped", provider=provider, reason="empty_filter")
            return []
        url = self.contents_url(provider, exam_filter)
        headers = {"Accept": "application/vnd.github+json"}
        token = token or self.config.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            content = decode_content(self.fetcher.fetch_json(url, headers=headers))
            exam = decode_exam(self.fetcher.fetch_json(content.download_url))
        except (FetchError, CacheError) as exc:
            self.logger.info("cache_miss", provider=provider, url=url, error=str(exc))
            return []
        sequence = itertools.count(1)
        records = [to_record(question, sequence) for question in exam.page_props.questions]
        self.logger.info("cache_hit", provider=provider, url=content.download_url, records=len(records))
        return records


__all__ = [
    "CachedExam",
    "CachedQuestion",
    "GitHubCacheBackend",
    "GitHubContent",
    "decode_content",
    "decode_exam",
    "exam_slug",
    "to_record",
]
