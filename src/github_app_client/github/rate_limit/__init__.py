"""Rate limit governance for GitHub API.

This module blocks callers before a request would exceed the quota of
its rate limit pool.
"""

from .governor import RateLimitGovernor, fetch_rate_limits
from .schemas import (
    PoolRateLimit,
    RateLimitPool,
    RateLimitSnapshot,
)

__all__ = [
    "PoolRateLimit",
    "RateLimitGovernor",
    "RateLimitPool",
    "RateLimitSnapshot",
    "fetch_rate_limits",
]
