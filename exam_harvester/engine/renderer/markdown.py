"""Markdown document renderer."""

from __future__ import annotations

from typing import Sequence

from ..models import QuestionRecord
from .base import SEPARATOR, BaseRenderer, RenderMeta


class MarkdownRenderer(BaseRenderer):
    suffix = ".md"

    def render(self, records: Sequence[QuestionRecord], meta: RenderMeta) -> str:
        lines = [
            f"# {meta.heading}",
            "",
            f"**Provider:** {meta.provider}",
            "",
        ]
        if meta.exam_code:
            lines.extend([f"**Exam Code:** {meta.exam_code}", ""])
        lines.extend([f"**Total Questions:** {len(records)}", "", "---", ""])
        for number, record in enumerate(records, start=1):
            lines.extend(self._section(number, record))
        return "\n".join(lines).rstrip() + "\n"

    def _section(self, number: int, record: QuestionRecord) -> list[str]:
        lines = [f"## Question {number}", ""]
        if record.content:
            lines.extend([record.content, ""])
        if record.choices:
            lines.extend(f"- {choice}" for choice in record.choices)
            lines.append("")
        if record.answer:
            lines.extend([f"**Suggested Answer: {record.answer}**", ""])
        if record.timestamp:
            lines.extend([f"**Added Since: {record.timestamp}**", ""])
        lines.extend([f"[View Discussion]({record.link})", ""])
        if self.include_comments and record.comments:
            lines.extend(["**Comments:**", "", record.comments, ""])
        lines.extend([SEPARATOR, ""])
        return lines


__all__ = ["MarkdownRenderer"]
