"""Pydantic models describing the harvester configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
DEFAULT_CACHE_CONTENTS_URL = (
    "https://api.github.com/repos/thatonecodes/examtopics-cache/contents/{provider}/{exam}.json"
)

OutputFormat = Literal["md", "html", "text", "pdf"]


class HttpConfig(BaseModel):
    """Options applied to every outgoing HTTP request."""

    timeout: float = 15.0
    retries: int = 2
    backoff: float = 1.0
    max_backoff: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT

    @model_validator(mode="after")
    def _validate_limits(self) -> "HttpConfig":
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.backoff < 0 or self.max_backoff < 0:
            raise ValueError("backoff delays must be >= 0")
        return self


class ConcurrencyConfig(BaseModel):
    """Worker ceilings for the discovery and fetch stages."""

    discovery: int = 10
    fetch: int = 10

    @model_validator(mode="after")
    def _validate_ceilings(self) -> "ConcurrencyConfig":
        if self.discovery < 1 or self.fetch < 1:
            raise ValueError("concurrency ceilings must be >= 1")
        return self


class RateLimitConfig(BaseModel):
    """Token rate shared by all workers of one stage."""

    requests_per_second: float = 5.0

    @field_validator("requests_per_second")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("requests_per_second must be > 0")
        return value


class CacheConfig(BaseModel):
    """Location of the cached JSON mirror on the GitHub contents API."""

    enabled: bool = True
    contents_url: str = DEFAULT_CACHE_CONTENTS_URL
    token: str | None = None

    @field_validator("contents_url")
    @classmethod
    def _has_placeholders(cls, value: str) -> str:
        if "{provider}" not in value or "{exam}" not in value:
            raise ValueError("contents_url must contain {provider} and {exam} placeholders")
        return value


class OutputConfig(BaseModel):
    """Where and how the rendered document is written."""

    path: Path = Field(default=Path("exam.md"))
    format: OutputFormat = "md"
    include_comments: bool = False
    save_links: bool = False
    links_path: Path = Field(default=Path("saved-links.txt"))

    @field_validator("path", "links_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)


class HarvestConfig(BaseModel):
    """Top-level settings for one harvester installation."""

    base_url: str = "https://www.examtopics.com"
    http: HttpConfig = Field(default_factory=HttpConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    enable_progress_bar: bool = True

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return value.rstrip("/")


__all__ = [
    "CacheConfig",
    "ConcurrencyConfig",
    "DEFAULT_CACHE_CONTENTS_URL",
    "DEFAULT_USER_AGENT",
    "HarvestConfig",
    "HttpConfig",
    "OutputConfig",
    "OutputFormat",
    "RateLimitConfig",
]
