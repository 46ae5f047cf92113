"""JWT assertions that authenticate as the GitHub App itself.

See: https://docs.github.com/en/apps/creating-github-apps/authenticating-with-a-github-app/generating-a-json-web-token-jwt-for-a-github-app
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import CredentialError

# GitHub rejects app JWTs valid for longer than 10 minutes
JWT_EXPIRATION_TIME = 600

# Backdate issued-at to tolerate clock drift with GitHub's servers
CLOCK_DRIFT_ALLOWANCE = 60


class AppCredentials(BaseModel):
    """Identity of a GitHub App installation."""

    model_config = ConfigDict(frozen=True)

    app_id: int = Field(description="App ID from the App's settings page")
    installation_id: int = Field(description="Installation ID for the organization")
    private_key: str = Field(repr=False, description="PEM encoded private key")
    algorithm: str = Field(default="RS256", description="JWT signing algorithm")


class SignedAssertion(BaseModel):
    """A signed, short-lived JWT identifying the App."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(repr=False)
    issued_at: datetime
    expires_at: datetime


def load_private_key(pem: str) -> PrivateKeyTypes:
    """Parse a PEM private key.

    Raises:
        CredentialError: If the key is malformed or of an unsupported type
    """
    try:
        return serialization.load_pem_private_key(pem.encode(), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CredentialError(f"Invalid GitHub App private key: {type(e).__name__}") from e


def mint_assertion(credentials: AppCredentials, *, now: datetime | None = None) -> SignedAssertion:
    """Build and sign a JWT for the App.

    Args:
        credentials: App identity and signing key
        now: Current time (defaults to the wall clock)

    Returns:
        SignedAssertion valid for 10 minutes from its issued-at time

    Raises:
        CredentialError: If the key cannot be parsed or signing fails
    """
    now = now or datetime.now(UTC)
    issued_at = now.replace(microsecond=0) - timedelta(seconds=CLOCK_DRIFT_ALLOWANCE)
    expires_at = issued_at + timedelta(seconds=JWT_EXPIRATION_TIME)

    payload = {
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
        "iss": str(credentials.app_id),
    }

    private_key = load_private_key(credentials.private_key)
    try:
        token = jwt.encode(payload, private_key, algorithm=credentials.algorithm)
    except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
        raise CredentialError(
            f"Failed to sign JWT with {credentials.algorithm}: {type(e).__name__}"
        ) from e

    return SignedAssertion(token=token, issued_at=issued_at, expires_at=expires_at)
