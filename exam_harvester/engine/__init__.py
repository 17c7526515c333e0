"""Engine components wiring discovery → dedup/order → fetch → render."""

from .cache import GitHubCacheBackend
from .content import ContentFetcher, compact
from .discovery import LimiterFactory, PageDiscoverer, default_limiter_factory
from .fetcher import FetchResponse, Fetcher
from .linkset import LinkSet, normalized_path, question_number
from .models import DiscoveryResult, HarvestResult, QuestionRecord, RunSummary
from .parser import Parser
from .ratelimit import RateLimiter
from .thread_pool import BoundedFetcher, CompletionEvent, Observer

__all__ = [
    "BoundedFetcher",
    "CompletionEvent",
    "ContentFetcher",
    "DiscoveryResult",
    "FetchResponse",
    "Fetcher",
    "GitHubCacheBackend",
    "HarvestResult",
    "LimiterFactory",
    "LinkSet",
    "Observer",
    "PageDiscoverer",
    "Parser",
    "QuestionRecord",
    "RateLimiter",
    "RunSummary",
    "compact",
    "default_limiter_factory",
    "normalized_path",
    "question_number",
]
