"""Pytest configuration and shared fixtures.

Usage Guide:
- For key material: use ``rsa_private_key_pem`` (generated once per session)
- For time: use ``clock`` (a FakeClock whose sleep advances time)
- For githubkit: use ``github_factory`` (patches session.build_client)
"""

from collections.abc import Generator

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from github_app_client.config import Settings, get_settings
from github_app_client.github import session as session_module
from github_app_client.logging import reset_logging
from tests.fixtures.clock import FakeClock
from tests.fixtures.github_app import FakeGitHubFactory
from tests.fixtures.rate_limit_responses import make_rate_limit_response

GH_APP_ENV_VARS = (
    "GH_APP_ID",
    "GH_APP_INSTALLATION_ID",
    "GH_APP_KEY",
    "GH_APP_ALGO",
    "GH_APP_LOG_LEVEL",
    "GH_APP_SLEEP",
    "GH_APP_RETRIES",
    "GH_APP_EXPONENTIAL_BACKOFF",
)


# -----------------------------------------------------------------------------
# Isolation
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Clear GH_APP_* variables, cached settings and loguru state."""
    for name in GH_APP_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    reset_logging()
    yield
    reset_logging()
    get_settings.cache_clear()


# -----------------------------------------------------------------------------
# Key Material
# -----------------------------------------------------------------------------
@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """RSA key generated once for the whole test session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_private_key_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    """PEM text of the session RSA key."""
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def escaped_key(rsa_private_key_pem: str) -> str:
    """The PEM key as a single line with literal \\n sequences."""
    return rsa_private_key_pem.replace("\n", "\\n")


# -----------------------------------------------------------------------------
# Clock, Settings, githubkit
# -----------------------------------------------------------------------------
@pytest.fixture
def clock() -> FakeClock:
    """Deterministic clock starting at the test epoch."""
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only (no environment, no .env)."""
    return Settings(_env_file=None)


@pytest.fixture
def github_factory(
    monkeypatch: pytest.MonkeyPatch, clock: FakeClock
) -> FakeGitHubFactory:
    """Patch githubkit client construction with mocks.

    The rate limit endpoint reports healthy quota resetting in an hour.
    """
    factory = FakeGitHubFactory()
    factory.set_rate_limits(make_rate_limit_response(clock.timestamp + 3600))
    monkeypatch.setattr(session_module, "build_client", factory)
    return factory
