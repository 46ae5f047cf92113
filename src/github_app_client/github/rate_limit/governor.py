"""Proactive rate limit governance for GitHub API requests.

The governor keeps a cached snapshot of every rate limit pool and blocks
the caller before a request would exceed its pool's quota.

Key Features:
- One free ``GET /rate_limit`` fetch per cache miss or suspected reset
- Optimistic local decrement after each permitted request
- Blocking sleep until the authoritative reset time (plus a margin)
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from github_app_client.logging import get_logger

from .schemas import PoolRateLimit, RateLimitPool, RateLimitSnapshot

if TYPE_CHECKING:
    from loguru import Logger

logger = get_logger(__name__)

# Extra seconds slept past the reset time to absorb clock skew
RESET_SAFETY_MARGIN = 2

SnapshotFetcher = Callable[[], RateLimitSnapshot]


def fetch_rate_limits(github: Any) -> RateLimitSnapshot:
    """Fetch rate limits for all pools from the API.

    The /rate_limit endpoint does not count against any quota.

    Args:
        github: githubkit GitHub instance

    Returns:
        Fresh RateLimitSnapshot
    """
    resp = github.rest.rate_limit.get()
    return RateLimitSnapshot.from_api_response(resp.parsed_data.model_dump())


class RateLimitGovernor:
    """Blocks callers until their rate limit pool has quota.

    Usage:
        governor = RateLimitGovernor(lambda: fetch_rate_limits(github))
        governor.wait_for_rate_limit("search")
        results = github.rest.search.issues_and_pull_requests(q="is:open")

    The governor holds mutable state and no lock; share one instance
    between threads only under external mutual exclusion.
    """

    def __init__(
        self,
        fetch: SnapshotFetcher,
        *,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime],
        log: Logger | None = None,
    ) -> None:
        """Initialize the governor.

        Args:
            fetch: Callable returning a fresh snapshot from the API
            sleep: Blocking sleep function
            now: Clock returning an aware UTC datetime
            log: Logger (defaults to the module logger)
        """
        self._fetch = fetch
        self._sleep = sleep
        self._now = now
        self._log = log or logger
        self._snapshot: RateLimitSnapshot | None = None

    @property
    def snapshot(self) -> RateLimitSnapshot | None:
        """Get current rate limit snapshot (None if never fetched)."""
        return self._snapshot

    def refresh(self) -> RateLimitSnapshot:
        """Replace the cached snapshot with a fresh one from the API."""
        self._snapshot = self._fetch()
        self._log.debug("rate limit snapshot: {}", self._snapshot.to_dict())
        return self._snapshot

    def _pool(self, category: str) -> PoolRateLimit | None:
        if self._snapshot is None:
            return None
        return self._snapshot.get_pool(category)

    def record_use(self, category: str) -> None:
        """Decrement the cached remaining count for a pool.

        Keeps the cache roughly in sync with real usage without an extra
        API call per request.
        """
        pool = self._pool(category)
        if pool is not None:
            pool.remaining -= 1

    def wait_for_rate_limit(self, category: str = RateLimitPool.CORE) -> float:
        """Block until one request of the given category may be made.

        Args:
            category: Rate limit pool (core, search, graphql, ...)

        Returns:
            Seconds slept (0 when quota was available)
        """
        self._log.debug("checking rate limit status for type: {}", category)
        if self._snapshot is None:
            self.refresh()

        pool = self._pool(category)
        if pool is None:
            self._log.warning("No rate limit data available for pool {}", category)
            return 0.0

        now = self._now()
        self._log.debug(
            "rate_limit remaining: {} - used: {} - resets_at: {} - current time: {}",
            pool.remaining,
            pool.used,
            pool.reset_at.isoformat(),
            now.isoformat(),
        )

        if pool.remaining > 0:
            self.record_use(category)
            return 0.0

        # The cache says we are out; the real quota may already have reset
        self.refresh()

        pool = self._pool(category)
        if pool is None:
            self._log.warning("No rate limit data available for pool {}", category)
            return 0.0

        if pool.remaining > 0:
            self._log.debug("rate_limit not hit - remaining: {}", pool.remaining)
            self.record_use(category)
            return 0.0

        sleep_duration = pool.seconds_until_reset(self._now())
        self._log.debug("sleep_duration: {}", sleep_duration)
        sleep_for = math.ceil(sleep_duration) + RESET_SAFETY_MARGIN

        self._log.info("github rate_limit hit: sleeping for: {} seconds", sleep_for)
        self._sleep(sleep_for)
        self._log.info("github rate_limit sleep complete - {}", self._now().isoformat())
        return float(sleep_for)
