"""Pydantic schemas for GitHub API rate limit data.

These schemas represent the response of the ``GET /rate_limit`` endpoint.
See: https://docs.github.com/en/rest/rate-limit/rate-limit
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, Field


class RateLimitPool(StrEnum):
    """GitHub rate limit resource pools.

    Each pool has its own separate quota. Most operations use 'core'.
    """

    CORE = "core"
    SEARCH = "search"
    GRAPHQL = "graphql"
    CODE_SEARCH = "code_search"
    INTEGRATION_MANIFEST = "integration_manifest"
    DEPENDENCY_SNAPSHOTS = "dependency_snapshots"
    CODE_SCANNING_UPLOAD = "code_scanning_upload"
    ACTIONS_RUNNER_REGISTRATION = "actions_runner_registration"
    SCIM = "scim"


class PoolRateLimit(BaseModel):
    """Rate limit information for a single resource pool.

    ``remaining`` is decremented locally between fetches and is not
    bounded below.
    """

    pool: str = Field(description="Resource pool name")
    limit: int = Field(ge=0, description="Maximum requests allowed per window")
    used: int = Field(ge=0, description="Requests used in current window")
    remaining: int = Field(description="Requests remaining in current window")
    reset_at: datetime = Field(description="UTC datetime when limit resets")

    def seconds_until_reset(self, now: datetime) -> float:
        """Seconds until the pool resets (0 if already past)."""
        return max((self.reset_at - now).total_seconds(), 0.0)


class RateLimitSnapshot(BaseModel):
    """Point-in-time view of all rate limit pools."""

    timestamp: datetime = Field(description="When this snapshot was taken")
    pools: dict[str, PoolRateLimit] = Field(
        default_factory=dict, description="Rate limits by pool"
    )

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Self:
        """Parse from GitHub /rate_limit API response.

        Every pool under ``resources`` is kept, including pools GitHub
        adds after this enum was written. Pools reported as null are
        skipped.

        Args:
            data: Raw API response dict with 'resources' key

        Returns:
            RateLimitSnapshot instance
        """
        pools: dict[str, PoolRateLimit] = {}
        resources = data.get("resources") or {}

        for name, r in resources.items():
            if not r:
                continue
            pools[name] = PoolRateLimit(
                pool=name,
                limit=r["limit"],
                used=r["used"],
                remaining=r["remaining"],
                reset_at=datetime.fromtimestamp(r["reset"], tz=UTC),
            )

        return cls(timestamp=datetime.now(UTC), pools=pools)

    def get_pool(self, pool: str) -> PoolRateLimit | None:
        """Get rate limit for a specific pool.

        Args:
            pool: Rate limit pool to query

        Returns:
            PoolRateLimit or None if no data for that pool
        """
        return self.pools.get(pool)

    def to_dict(self) -> dict[str, Any]:
        """Export as dictionary (for logging/metrics)."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "pools": {
                name: {
                    "limit": limit.limit,
                    "remaining": limit.remaining,
                    "used": limit.used,
                    "reset_at": limit.reset_at.isoformat(),
                }
                for name, limit in self.pools.items()
            },
        }
