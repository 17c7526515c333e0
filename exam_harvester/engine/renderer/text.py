"""Plain-text renderer: the markdown document with its markup removed."""

from __future__ import annotations

import re
from typing import Sequence

from ..models import QuestionRecord
from .base import RenderMeta
from .markdown import MarkdownRenderer

_IMAGE = re.compile(r"!\[[^\]]*\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_HEADER = re.compile(r"^#{1,6}\s*", re.MULTILINE)
_STRONG = re.compile(r"(\*\*|__)(.+?)\1")
_EMPHASIS = re.compile(r"(?<![\w*])([*_])(?!\s)(.+?)(?<!\s)\1(?![\w*])")


def strip_markdown(text: str) -> str:
    """Remove headers, emphasis, links (keeping their text) and images."""

    text = _IMAGE.sub("", text)
    text = _LINK.sub(r"\1", text)
    text = _HEADER.sub("", text)
    text = _STRONG.sub(r"\2", text)
    return _EMPHASIS.sub(r"\2", text)


class TextRenderer(MarkdownRenderer):
    suffix = ".txt"

    def render(self, records: Sequence[QuestionRecord], meta: RenderMeta) -> str:
        return strip_markdown(super().render(records, meta))


__all__ = ["TextRenderer", "strip_markdown"]
