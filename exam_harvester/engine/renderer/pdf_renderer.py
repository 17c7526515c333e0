"""PDF renderer: the markdown document laid out page by page with fpdf2."""

from __future__ import annotations

import re
from typing import Sequence

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from ..models import QuestionRecord
from .base import RenderMeta
from .markdown import MarkdownRenderer
from .text import strip_markdown

_RULE = re.compile(r"^-{3,}$")
_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")
_HEADING_SIZES = {1: 18, 2: 14}
_BODY_SIZE = 11
_LINE_HEIGHT = 6


def _latin1(text: str) -> str:
    # Core PDF fonts only cover latin-1.
    return text.encode("latin-1", "replace").decode("latin-1")


class PdfRenderer(MarkdownRenderer):
    """Render the markdown document to A4 pages; each horizontal rule starts a new page."""

    suffix = ".pdf"

    def render(self, records: Sequence[QuestionRecord], meta: RenderMeta) -> str:
        return strip_markdown(super().render(records, meta))

    def encode(self, records: Sequence[QuestionRecord], meta: RenderMeta) -> bytes:
        pdf = FPDF(orientation="portrait", format="A4")
        pdf.set_auto_page_break(True, margin=15)
        pdf.set_title(_latin1(meta.heading))
        pdf.add_page()
        for line in super().render(records, meta).splitlines():
            stripped = line.strip()
            if _RULE.match(stripped):
                if pdf.get_y() > pdf.t_margin:
                    pdf.add_page()
                continue
            heading = _HEADING.match(stripped)
            if heading:
                pdf.set_font("Helvetica", "B", _HEADING_SIZES.get(len(heading.group(1)), _BODY_SIZE))
                text = strip_markdown(heading.group(2))
            else:
                pdf.set_font("Helvetica", "", _BODY_SIZE)
                text = strip_markdown(line)
            pdf.multi_cell(0, _LINE_HEIGHT, _latin1(text) or " ", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        return bytes(pdf.output())


__all__ = ["PdfRenderer"]
