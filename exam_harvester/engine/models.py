"""Value types flowing through the discovery and fetch stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True, slots=True)
class QuestionRecord:
    """One fully extracted question, ready for rendering."""

    title: str
    content: str
    choices: tuple[str, ...]
    answer: str
    timestamp: str
    link: str
    comments: str = ""


@dataclass(slots=True)
class DiscoveryResult:
    """Output of one discovery pass: page count plus flattened candidate links."""

    pages: int
    links: list[str] = field(default_factory=list)


@dataclass(slots=True)
class RunSummary:
    """Counters describing a finished run, used to detect silent partial loss."""

    provider: str
    exam_filter: str
    origin: Literal["cache", "live"]
    pages: int = 0
    discovered_links: int = 0
    unique_links: int = 0
    scheduled: int = 0
    produced: int = 0
    elapsed: float = 0.0

    @property
    def failed(self) -> int:
        return self.scheduled - self.produced


@dataclass(slots=True)
class HarvestResult:
    records: list[QuestionRecord]
    summary: RunSummary


__all__ = ["DiscoveryResult", "HarvestResult", "QuestionRecord", "RunSummary"]
