"""Rate limiting adapters.

The sliding-window algorithm lives in one place and persists its state through
a small store interface, so the JSON file store used in production and the
in-memory store used in tests and single-process setups share identical
semantics.
"""

from portfolio_api.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractRateLimitStore,
    RateLimitResult,
)
from portfolio_api.adapters.rate_limit.in_memory import InMemoryRateLimitStore
from portfolio_api.adapters.rate_limit.json_file import JsonFileRateLimitStore
from portfolio_api.adapters.rate_limit.sliding_window import SlidingWindowRateLimiter

__all__ = [
    "AbstractRateLimitStore",
    "AbstractRateLimiter",
    "InMemoryRateLimitStore",
    "JsonFileRateLimitStore",
    "RateLimitResult",
    "SlidingWindowRateLimiter",
]
