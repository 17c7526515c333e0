"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    CacheConfig,
    ConcurrencyConfig,
    HarvestConfig,
    HttpConfig,
    OutputConfig,
    RateLimitConfig,
)

__all__ = [
    "CacheConfig",
    "ConcurrencyConfig",
    "ConfigLocator",
    "ConfigRepository",
    "HarvestConfig",
    "HttpConfig",
    "OutputConfig",
    "RateLimitConfig",
]
