"""Installation session management for GitHub App authentication.

GitHub App authentication is a two step flow:

1. Sign a JWT with the App's private key (valid for 10 minutes)
2. Trade the JWT for an installation access token (valid for 1 hour)

The session manager performs the exchange lazily, caches the resulting
githubkit client and replaces it before the installation token expires.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from githubkit import GitHub, TokenAuthStrategy, UnauthAuthStrategy

from github_app_client.logging import forget_secret, get_logger, register_secret

from .assertion import AppCredentials, mint_assertion
from .exceptions import AuthenticationError

if TYPE_CHECKING:
    from loguru import Logger

logger = get_logger(__name__)

# Installation tokens live for 3600s; refresh well before that
TOKEN_EXPIRATION_TIME = 2700

DEFAULT_PER_PAGE = 100


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def build_client(auth: Any) -> GitHub[Any]:
    """Create a githubkit client.

    githubkit's own retry on rate limits is disabled; retries and rate
    limit waits are handled by this package.
    """
    return GitHub(auth, auto_retry=False)


@dataclass(frozen=True)
class Session:
    """An authenticated client and the time its token was minted."""

    client: GitHub[Any]
    minted_at: datetime
    per_page: int = DEFAULT_PER_PAGE

    def age(self, now: datetime) -> float:
        """Seconds since the installation token was minted."""
        return (now - self.minted_at).total_seconds()


class SessionManager:
    """Owns the App credentials and the single live installation session.

    Usage:
        manager = SessionManager(credentials)
        repo = manager.client.rest.repos.get("owner", "name")

    No network call happens until ``client`` is first accessed.
    """

    def __init__(
        self,
        credentials: AppCredentials,
        *,
        now: Callable[[], datetime] = utc_now,
        log: Logger | None = None,
    ) -> None:
        """Initialize the session manager.

        Args:
            credentials: App identity used to mint JWTs
            now: Clock used for token age tracking
            log: Logger (defaults to the module logger)
        """
        self._credentials = credentials
        self._now = now
        self._log = log or logger
        # Secrets registered for redaction on behalf of the live session
        self._secrets: list[str] = []
        self._session: Session | None = None
        self._introspection_client: GitHub[Any] | None = None

    @property
    def session(self) -> Session | None:
        """The current session (None before the first exchange)."""
        return self._session

    @property
    def client(self) -> GitHub[Any]:
        """Get the authenticated client, minting a new token if needed."""
        if self.is_expired():
            self.refresh()
        assert self._session is not None
        return self._session.client

    def is_expired(self) -> bool:
        """Check if the installation token must be replaced.

        Tokens are considered expired after 45 minutes to leave a margin
        for clock drift against the 1 hour lifetime.
        """
        if self._session is None:
            return True
        return self._session.age(self._now()) > TOKEN_EXPIRATION_TIME

    def refresh(self) -> Session:
        """Exchange a fresh JWT for an installation token and install a new session.

        Returns:
            The new Session

        Raises:
            CredentialError: If the JWT cannot be signed
            AuthenticationError: If the token exchange fails
        """
        assertion = mint_assertion(self._credentials, now=self._now())
        self._track_secret(assertion.token)

        self._log.debug(
            "Exchanging JWT for installation token (installation_id={})",
            self._credentials.installation_id,
        )
        try:
            bootstrap = build_client(UnauthAuthStrategy())
            resp = bootstrap.rest.apps.create_installation_access_token(
                self._credentials.installation_id,
                headers={"Authorization": f"Bearer {assertion.token}"},
            )
            token = resp.parsed_data.token
        except Exception as e:
            raise AuthenticationError(
                "Failed to create installation access token for installation "
                f"{self._credentials.installation_id}: {type(e).__name__}"
            ) from e

        if not token:
            raise AuthenticationError(
                f"Empty installation access token for installation "
                f"{self._credentials.installation_id}"
            )
        self._track_secret(token)

        session = Session(client=build_client(TokenAuthStrategy(token)), minted_at=self._now())
        self._session = session
        self._release_secrets(keep=(assertion.token, token))
        self._log.info("Minted new installation access token")
        return session

    def capability_client(self) -> GitHub[Any]:
        """Get a client suitable for attribute introspection.

        Uses the live client when one exists. Otherwise an unauthenticated
        client is built; githubkit exposes the same API surface either way
        and building one makes no network call.
        """
        if self._session is not None:
            return self._session.client
        if self._introspection_client is None:
            self._introspection_client = build_client(UnauthAuthStrategy())
        return self._introspection_client

    def close(self) -> None:
        """Drop the current session."""
        self._session = None
        self._release_secrets()

    def _track_secret(self, value: str) -> None:
        register_secret(value)
        self._secrets.append(value)

    def _release_secrets(self, keep: tuple[str, ...] = ()) -> None:
        """Forget secrets of replaced sessions and failed exchanges."""
        for value in self._secrets:
            if value not in keep:
                forget_secret(value)
        self._secrets = [value for value in keep if value]
