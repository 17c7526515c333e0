"""Standalone HTML document renderer.

Template-free; every dynamic value passes through ``html.escape``.
"""

from __future__ import annotations

import html
import re
from typing import Sequence

from ..models import QuestionRecord
from .base import BaseRenderer, RenderMeta

_EXHIBIT = re.compile(r"^!\[([^\]]*)\]\(([^)\s]+)\)$")


def _paragraphs(text: str) -> str:
    parts: list[str] = []
    for line in text.splitlines():
        match = _EXHIBIT.match(line.strip())
        if match:
            alt, src = match.groups()
            parts.append(f'<img src="{html.escape(src)}" alt="{html.escape(alt)}" />')
        elif line.strip():
            parts.append(f"<p>{html.escape(line)}</p>")
    return "".join(parts)


class HtmlRenderer(BaseRenderer):
    suffix = ".html"

    def render(self, records: Sequence[QuestionRecord], meta: RenderMeta) -> str:
        sections = "".join(self._section(number, record) for number, record in enumerate(records, start=1))
        exam_code = (
            f"<li><strong>Exam Code:</strong> {html.escape(meta.exam_code)}</li>" if meta.exam_code else ""
        )
        title = html.escape(meta.heading)
        return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{title}</title>
  <style>
    body {{ font-family: 'Segoe UI', Tahoma, sans-serif; margin: 24px; background: #f7fafc; color: #1f2937; }}
    .card {{ background: white; border-radius: 10px; padding: 16px; margin-bottom: 16px; box-shadow: 0 1px 3px rgba(0,0,0,0.08); }}
    .answer {{ color: #065f46; font-weight: 600; }}
    .meta {{ color: #4b5563; }}
    img {{ max-width: 100%; }}
    pre {{ white-space: pre-wrap; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <ul class="meta">
    <li><strong>Provider:</strong> {html.escape(meta.provider)}</li>
    {exam_code}
    <li><strong>Total Questions:</strong> {len(records)}</li>
  </ul>
  {sections}
</body>
</html>
"""

    def _section(self, number: int, record: QuestionRecord) -> str:
        choices = "".join(f"<li>{html.escape(choice)}</li>" for choice in record.choices)
        parts = [f'<section class="card"><h2>Question {number}</h2>', _paragraphs(record.content)]
        if choices:
            parts.append(f"<ul>{choices}</ul>")
        if record.answer:
            parts.append(f'<p class="answer">Suggested Answer: {html.escape(record.answer)}</p>')
        if record.timestamp:
            parts.append(f'<p class="meta">Added Since: {html.escape(record.timestamp)}</p>')
        parts.append(f'<p><a href="{html.escape(record.link)}" target="_blank">View Discussion</a></p>')
        if self.include_comments and record.comments:
            parts.append(f"<h3>Comments</h3><pre>{html.escape(record.comments)}</pre>")
        parts.append("</section>")
        return "".join(parts)


__all__ = ["HtmlRenderer"]
