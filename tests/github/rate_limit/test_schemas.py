"""Contract tests for rate limit Pydantic schemas.

These tests verify that schemas correctly parse GitHub /rate_limit
responses.
"""

from datetime import UTC, datetime, timedelta

import pytest

from github_app_client.github.rate_limit.schemas import (
    PoolRateLimit,
    RateLimitPool,
    RateLimitSnapshot,
)
from tests.fixtures.clock import EPOCH
from tests.fixtures.rate_limit_responses import (
    RATE_LIMIT_RESPONSE_HEALTHY,
    RATE_LIMIT_RESPONSE_UNKNOWN_POOL,
    RATE_LIMIT_RESPONSE_WITH_NULL_POOLS,
)


class TestRateLimitPool:
    """Tests for RateLimitPool enum."""

    def test_all_expected_pools_exist(self) -> None:
        """All documented GitHub rate limit pools should be defined."""
        expected = {"core", "search", "graphql", "code_search", "integration_manifest"}
        actual = {pool.value for pool in RateLimitPool}
        assert expected.issubset(actual)

    def test_pools_compare_equal_to_strings(self) -> None:
        """Pools can be used wherever a plain category string is expected."""
        assert RateLimitPool.SEARCH == "search"
        assert {"search": 1}[RateLimitPool.SEARCH] == 1


class TestPoolRateLimit:
    """Tests for PoolRateLimit model."""

    def test_seconds_until_reset(self) -> None:
        limit = PoolRateLimit(
            pool="core", limit=5000, used=0, remaining=5000, reset_at=EPOCH + timedelta(seconds=90)
        )
        assert limit.seconds_until_reset(EPOCH) == 90

    def test_seconds_until_reset_past(self) -> None:
        limit = PoolRateLimit(
            pool="core", limit=5000, used=0, remaining=5000, reset_at=EPOCH - timedelta(seconds=90)
        )
        assert limit.seconds_until_reset(EPOCH) == 0

    def test_remaining_may_go_negative(self) -> None:
        """Local decrements are not clamped."""
        limit = PoolRateLimit(pool="core", limit=5000, used=5000, remaining=-1, reset_at=EPOCH)
        assert limit.remaining == -1

    def test_negative_limit_rejected(self) -> None:
        with pytest.raises(ValueError):
            PoolRateLimit(pool="core", limit=-1, used=0, remaining=0, reset_at=EPOCH)


class TestRateLimitSnapshot:
    """Tests for RateLimitSnapshot parsing."""

    def test_from_api_response(self) -> None:
        snapshot = RateLimitSnapshot.from_api_response(RATE_LIMIT_RESPONSE_HEALTHY)

        core = snapshot.get_pool("core")
        assert core is not None
        assert core.limit == 5000
        assert core.remaining == 4500
        assert core.used == 500
        assert core.reset_at.tzinfo == UTC
        assert set(snapshot.pools) == {
            "core",
            "search",
            "graphql",
            "code_search",
            "integration_manifest",
        }

    def test_reset_is_utc_datetime(self) -> None:
        data = {"resources": {"core": {"limit": 1, "used": 0, "remaining": 1, "reset": 1704067200}}}
        snapshot = RateLimitSnapshot.from_api_response(data)

        assert snapshot.get_pool("core").reset_at == datetime(2024, 1, 1, tzinfo=UTC)

    def test_null_pools_skipped(self) -> None:
        snapshot = RateLimitSnapshot.from_api_response(RATE_LIMIT_RESPONSE_WITH_NULL_POOLS)

        assert set(snapshot.pools) == {"core", "search"}
        assert snapshot.get_pool(RateLimitPool.GRAPHQL) is None

    def test_unknown_pools_kept(self) -> None:
        snapshot = RateLimitSnapshot.from_api_response(RATE_LIMIT_RESPONSE_UNKNOWN_POOL)

        assert snapshot.get_pool("audit_log") is not None
        assert snapshot.get_pool("audit_log").limit == 1750

    def test_empty_response(self) -> None:
        snapshot = RateLimitSnapshot.from_api_response({})
        assert snapshot.pools == {}
        assert snapshot.get_pool("core") is None

    def test_to_dict(self) -> None:
        snapshot = RateLimitSnapshot.from_api_response(RATE_LIMIT_RESPONSE_HEALTHY)
        data = snapshot.to_dict()

        assert data["pools"]["core"]["remaining"] == 4500
        assert "timestamp" in data
