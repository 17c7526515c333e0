"""Deduplicate candidate links and order them by their embedded question number."""

from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import urlparse

_QUESTION_SLUG = re.compile(r"question-(\d+)", re.IGNORECASE)


def normalized_path(link: str) -> str:
    """Dedup key: the path alone, without scheme, host, query, fragment or trailing slash."""

    path = urlparse(link.strip()).path
    return (path.rstrip("/") or "/").lower()


def question_number(link: str) -> int | None:
    """Return the question number embedded in ``link``, or ``None`` when absent.

    A ``question-<n>`` slug wins; otherwise the last all-digit path segment is used.
    """

    path = normalized_path(link)
    match = _QUESTION_SLUG.search(path)
    if match:
        return int(match.group(1))
    segments = [segment for segment in path.split("/") if segment]
    if segments and segments[-1].isdigit():
        return int(segments[-1])
    return None


class LinkSet:
    """Turn raw discovery output into a unique, deterministically ordered sequence."""

    def normalize(self, links: Iterable[str]) -> list[str]:
        """Drop duplicate paths and sort ascending by question number.

        Each path is represented by its lexicographically smallest spelling. Links
        without a number go last, in the order they were first discovered.
        """

        chosen: dict[str, str] = {}
        for link in links:
            key = normalized_path(link)
            current = chosen.get(key)
            if current is None or link < current:
                chosen[key] = link
        return sorted(chosen.values(), key=self._sort_key)

    @staticmethod
    def _sort_key(link: str) -> tuple[int, int, str]:
        number = question_number(link)
        if number is None:
            return (1, 0, "")
        # Equal numbers fall back to the path so input order never leaks into the output.
        return (0, number, normalized_path(link))


__all__ = ["LinkSet", "normalized_path", "question_number"]
