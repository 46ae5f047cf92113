"""Test fixtures for the GitHub App client."""

from .clock import EPOCH, FakeClock
from .github_app import APP_ID, INSTALLATION_ID, INSTALLATION_TOKEN, FakeGitHubFactory
from .rate_limit_responses import (
    RATE_LIMIT_RESPONSE_HEALTHY,
    RATE_LIMIT_RESPONSE_UNKNOWN_POOL,
    RATE_LIMIT_RESPONSE_WITH_NULL_POOLS,
    make_rate_limit_response,
)

__all__ = [
    # Time
    "EPOCH",
    "FakeClock",
    # githubkit doubles
    "APP_ID",
    "INSTALLATION_ID",
    "INSTALLATION_TOKEN",
    "FakeGitHubFactory",
    # /rate_limit payloads
    "RATE_LIMIT_RESPONSE_HEALTHY",
    "RATE_LIMIT_RESPONSE_UNKNOWN_POOL",
    "RATE_LIMIT_RESPONSE_WITH_NULL_POOLS",
    "make_rate_limit_response",
]
