"""Renderer SPI and implementations."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from ..models import QuestionRecord
from .base import BaseRenderer, RenderMeta
from .html_renderer import HtmlRenderer
from .markdown import MarkdownRenderer
from .pdf_renderer import PdfRenderer
from .text import TextRenderer, strip_markdown

RENDERERS: dict[str, type[BaseRenderer]] = {
    "md": MarkdownRenderer,
    "html": HtmlRenderer,
    "text": TextRenderer,
    "pdf": PdfRenderer,
}


def build_renderer(fmt: str, include_comments: bool = False) -> BaseRenderer:
    try:
        renderer_cls = RENDERERS[fmt]
    except KeyError as exc:
        raise ValueError(f"Unsupported output format: {fmt}") from exc
    return renderer_cls(include_comments=include_comments)


def save_links(path: Path, records: Iterable[QuestionRecord]) -> Path:
    """Write one question link per line, in record order."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{record.link}\n" for record in records), encoding="utf-8")
    return path


__all__ = [
    "BaseRenderer",
    "HtmlRenderer",
    "MarkdownRenderer",
    "PdfRenderer",
    "RENDERERS",
    "RenderMeta",
    "TextRenderer",
    "build_renderer",
    "save_links",
    "strip_markdown",
]
