"""Exception hierarchy shared by the harvesting pipeline."""

from __future__ import annotations


class HarvestError(RuntimeError):
    """Base class for every failure raised by exam_harvester."""


class FetchError(HarvestError):
    """A network call failed or returned an unusable status."""

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{message}: {url}")
        self.url = url
        self.status_code = status_code


class ParseError(HarvestError):
    """A fetched document lacks the fields required to build a record."""


class DiscoveryError(HarvestError):
    """The listing page count could not be determined, so no work can be scheduled."""


class CacheError(HarvestError):
    """A cache payload did not match the expected schema."""


__all__ = ["CacheError", "DiscoveryError", "FetchError", "HarvestError", "ParseError"]
