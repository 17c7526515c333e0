"""Renderer Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from ..models import QuestionRecord

SEPARATOR = "-" * 40


@dataclass(frozen=True, slots=True)
class RenderMeta:
    """Document-level facts shown in the exam header."""

    provider: str
    exam_code: str = ""

    @property
    def heading(self) -> str:
        return f"Exam {self.exam_code}" if self.exam_code else f"{self.provider} questions"


class BaseRenderer(ABC):
    """Uniform renderer contract so output formats stay interchangeable."""

    suffix = ".txt"

    def __init__(self, include_comments: bool = False) -> None:
        self.include_comments = include_comments

    @abstractmethod
    def render(self, records: Sequence[QuestionRecord], meta: RenderMeta) -> str:
        """Return the full document for ``records``."""

    def encode(self, records: Sequence[QuestionRecord], meta: RenderMeta) -> bytes:
        return self.render(records, meta).encode("utf-8")

    def target_path(self, path: Path) -> Path:
        return path.with_suffix(self.suffix)

    def write(self, records: Sequence[QuestionRecord], meta: RenderMeta, path: Path) -> Path:
        target = self.target_path(Path(path))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.encode(records, meta))
        return target


__all__ = ["BaseRenderer", "RenderMeta", "SEPARATOR"]
