"""GitHub App client module.

This module provides:
- GitHubApp: githubkit wrapper authenticating as a GitHub App installation
- Credentials: resolve_private_key, AppCredentials, mint_assertion
- Sessions: SessionManager, Session
- Rate limit governance: RateLimitGovernor, RateLimitPool, RateLimitSnapshot
- Retries: RetryEngine
- Dispatch: CallDispatcher, classify_operation
"""

from .assertion import AppCredentials, SignedAssertion, mint_assertion
from .client import GitHubApp
from .credentials import normalize_key_string, resolve_private_key
from .dispatch import CallDispatcher, OperationProxy, classify_operation
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    CredentialError,
    GitHubAppError,
    SecondaryRateLimitError,
    TransientRequestError,
    is_secondary_rate_limit,
)
from .rate_limit import (
    PoolRateLimit,
    RateLimitGovernor,
    RateLimitPool,
    RateLimitSnapshot,
)
from .retry import RetryEngine
from .session import Session, SessionManager

__all__ = [
    # Client
    "GitHubApp",
    # Exceptions
    "AuthenticationError",
    "ConfigurationError",
    "CredentialError",
    "GitHubAppError",
    "SecondaryRateLimitError",
    "TransientRequestError",
    "is_secondary_rate_limit",
    # Credentials
    "AppCredentials",
    "SignedAssertion",
    "mint_assertion",
    "normalize_key_string",
    "resolve_private_key",
    # Sessions
    "Session",
    "SessionManager",
    # Rate limit governance
    "PoolRateLimit",
    "RateLimitGovernor",
    "RateLimitPool",
    "RateLimitSnapshot",
    # Retries
    "RetryEngine",
    # Dispatch
    "CallDispatcher",
    "OperationProxy",
    "classify_operation",
]
