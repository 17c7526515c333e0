"""DOM extraction rules for listing, question and exam pages."""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlparse

from selectolax.parser import HTMLParser

from ..errors import ParseError
from .models import QuestionRecord

_WHITESPACE = re.compile(r"[ \t\r\f\v\u00a0]+")
_DIGITS = re.compile(r"\d+")


def clean_text(text: str | None) -> str:
    """Collapse runs of blank space on each line and drop empty lines."""

    if not text:
        return ""
    lines = (_WHITESPACE.sub(" ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def absolute_url(base_url: str, link: str) -> str:
    if link.startswith(("http://", "https://")):
        return link
    return urljoin(base_url.rstrip("/") + "/", link.lstrip("/"))


def _is_boilerplate(line: str) -> bool:
    return line.startswith("Actual exam") or line.startswith("Actual Exam") or (
        line.startswith("All") and "Questions" in line
    )


class Parser:
    """Parse listing pages and question pages of the discussion site."""

    page_indicator_selector = ".discussion-list-page-indicator strong"
    discussion_link_selector = "a.discussion-link"

    def parse_page_count(self, html: str) -> int | None:
        """Return the largest page number in the pagination indicator.

        Falls back to ``1`` when the indicator is missing but the page lists
        discussions, and ``None`` when neither is present.
        """

        parser = HTMLParser(html)
        numbers: list[int] = []
        for node in parser.css(self.page_indicator_selector):
            numbers.extend(int(match) for match in _DIGITS.findall(node.text(strip=True)))
        if numbers:
            return max(numbers)
        if parser.css_first(self.discussion_link_selector) is not None:
            return 1
        return None

    def parse_discussion_links(self, html: str, exam_filter: str = "") -> list[str]:
        """Return discussion hrefs whose href or anchor text contains ``exam_filter``.

        An empty filter matches every discussion.
        """

        needle = exam_filter.strip().lower()
        links: list[str] = []
        for node in HTMLParser(html).css(self.discussion_link_selector):
            href = (node.attributes.get("href") or "").strip()
            if not href or href.startswith(("javascript:", "#")):
                continue
            if needle:
                haystack = f"{href} {node.text(separator=' ', strip=True)}".lower()
                if needle not in haystack:
                    continue
            links.append(href)
        return links

    def parse_question(self, html: str, link: str, base_url: str) -> QuestionRecord:
        parser = HTMLParser(html)
        title = clean_text(self._text(parser, "h1"))
        if not title:
            raise ParseError(f"Question page has no title: {link}")

        choice_texts = (clean_text(node.text()) for node in parser.css("li.multi-choice-item"))
        choices = tuple(text for text in choice_texts if text)
        answer = self._text(parser, ".correct-answer").strip().replace("\n", "").replace("\t", "")

        body_lines = [
            line for line in clean_text(self._text(parser, ".card-text")).splitlines()
            if not _is_boilerplate(line)
        ]
        content = "\n".join(body_lines)
        for image in parser.css(".card-text img"):
            src = (image.attributes.get("src") or "").strip()
            if not src:
                continue
            if not src.startswith("http"):
                src = absolute_url(base_url, src)
            content += f"\n\n![Exhibit]({src})"

        return QuestionRecord(
            title=title,
            content=content,
            choices=choices,
            answer=answer,
            timestamp=clean_text(self._text(parser, ".discussion-meta-data > i")),
            link=link,
            comments=clean_text(self._text(parser, ".discussion-container")),
        )

    def parse_exam_links(self, html: str, provider: str, base_url: str) -> list[str]:
        """Return absolute URLs of every exam listed for ``provider``, in page order."""

        prefix = f"/exams/{provider.strip('/').lower()}/"
        seen: set[str] = set()
        exams: list[str] = []
        for node in HTMLParser(html).css("a[href]"):
            href = (node.attributes.get("href") or "").strip()
            path = urlparse(href).path
            if not path.lower().startswith(prefix) or path.rstrip("/").lower() == prefix.rstrip("/"):
                continue
            url = absolute_url(base_url, path)
            if url not in seen:
                seen.add(url)
                exams.append(url)
        return exams

    @staticmethod
    def _text(parser: HTMLParser, selector: str) -> str:
        return "\n".join(node.text() for node in parser.css(selector))


__all__ = ["Parser", "absolute_url", "clean_text"]
