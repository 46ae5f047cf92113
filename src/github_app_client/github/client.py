"""GitHub App client wrapper using githubkit.

Why? A static, long lived token such as a PAT is not always an option.
``GitHubApp`` authenticates as a GitHub App installation and handles token
refreshing, retries and rate limiting out of the box. Build it from
environment variables (or explicit values) and use it as you would a
githubkit client.

See: https://github.com/octokit/handbook?tab=readme-ov-file#github-app-authentication-json-web-token
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from github_app_client.config import RetryPolicy, Settings, get_settings
from github_app_client.logging import get_logger, install_default_sink, with_redaction

from .assertion import AppCredentials
from .credentials import resolve_private_key
from .dispatch import CallDispatcher, OperationProxy
from .exceptions import ConfigurationError
from .rate_limit.governor import RateLimitGovernor, fetch_rate_limits
from .rate_limit.schemas import RateLimitPool, RateLimitSnapshot
from .retry import RetryEngine
from .session import SessionManager, utc_now

if TYPE_CHECKING:
    from loguru import Logger


def _require(value: int | None, env_var: str) -> int:
    if value is None:
        raise ConfigurationError(f"environment variable {env_var} is not set")
    return value


def _settings_fields(error: ValidationError) -> str:
    """Environment variable names of the settings that failed validation."""
    names = []
    for err in error.errors():
        field = str(err["loc"][0]).upper() if err["loc"] else "SETTINGS"
        names.append(field if field.startswith("GH_APP_") else f"GH_APP_{field}")
    return ", ".join(dict.fromkeys(names))


class GitHubApp:
    """GitHub App installation client with automatic token management.

    Any githubkit operation is available on the wrapper and goes through
    rate limit governance and retries:

    Usage:
        # GH_APP_ID, GH_APP_INSTALLATION_ID and GH_APP_KEY set in the environment
        github = GitHubApp()
        repo = github.rest.repos.get("owner", "name")
        results = github.search_issues(q="is:open repo:owner/name")
        issues = github.paginate("rest.issues.list_for_repo", owner="owner", repo="name")

        # Skip retries for a single call
        github.rest.issues.create("owner", "name", title="Title", disable_retry=True)

    An instance holds mutable session and rate limit state without locks.
    Issue one request at a time per instance; concurrent callers must
    serialize access themselves.
    """

    def __init__(
        self,
        *,
        log: Logger | None = None,
        app_id: int | None = None,
        installation_id: int | None = None,
        app_key: str | None = None,
        app_algo: str | None = None,
        settings: Settings | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the GitHub App client.

        No network call is made until the first operation is dispatched.

        Args:
            log: Custom loguru logger used by every component. When omitted,
                the package logger is used and loguru's stock stderr handler
                (if still installed) is replaced by one at GH_APP_LOG_LEVEL.
                Sinks added by the host application are left alone.
            app_id: App ID. Falls back to GH_APP_ID.
            installation_id: Installation ID. Falls back to GH_APP_INSTALLATION_ID.
            app_key: Private key: a ``.pem`` path or the key text with
                newlines escaped as ``\\n``. Falls back to GH_APP_KEY.
            app_algo: JWT signing algorithm. Falls back to GH_APP_ALGO (RS256).
            settings: Settings provider (defaults to get_settings()).
            retry_policy: Retry policy (defaults to the GH_APP_SLEEP,
                GH_APP_RETRIES and GH_APP_EXPONENTIAL_BACKOFF settings).
            sleep: Blocking sleep function used for all waits.
            now: Clock returning an aware UTC datetime.

        Raises:
            ConfigurationError: If a required identity input is missing or
                invalid, or the key file is missing/empty.
        """
        try:
            settings = settings or get_settings()
        except ValidationError as e:
            raise ConfigurationError(
                f"invalid environment configuration: {_settings_fields(e)}"
            ) from e

        if log is None:
            install_default_sink(settings.log_level)
            self._log = get_logger(__name__)
        else:
            self._log = with_redaction(log)

        try:
            self._credentials = AppCredentials(
                app_id=_require(app_id if app_id is not None else settings.app_id, "GH_APP_ID"),
                installation_id=_require(
                    installation_id if installation_id is not None else settings.installation_id,
                    "GH_APP_INSTALLATION_ID",
                ),
                private_key=resolve_private_key(
                    app_key, env_value=settings.app_key, log=self._log
                ),
                algorithm=app_algo or settings.app_algo,
            )
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise ConfigurationError(f"invalid App identity: {fields}") from e

        self._sessions = SessionManager(self._credentials, now=now, log=self._log)
        self._retry = RetryEngine(
            retry_policy or settings.retry_policy, sleep=sleep, log=self._log
        )
        self._governor = RateLimitGovernor(
            lambda: self._retry.execute(lambda: fetch_rate_limits(self._sessions.client)),
            sleep=sleep,
            now=now,
            log=self._log,
        )
        self._dispatcher = CallDispatcher(
            self._sessions, self._governor, self._retry, sleep=sleep, log=self._log
        )

        self._log.debug(
            "GitHub App client ready (app_id={}, installation_id={}, algo={})",
            self._credentials.app_id,
            self._credentials.installation_id,
            self._credentials.algorithm,
        )

    @property
    def credentials(self) -> AppCredentials:
        """The App identity (the private key is hidden from repr)."""
        return self._credentials

    @property
    def retry_policy(self) -> RetryPolicy:
        """The retry policy applied to dispatched calls."""
        return self._retry.policy

    @property
    def rate_limit_snapshot(self) -> RateLimitSnapshot | None:
        """Cached rate limit state (None before the first request)."""
        return self._governor.snapshot

    def wait_for_rate_limit(self, category: str = RateLimitPool.CORE) -> float:
        """Block until a request of the given category may be made.

        Checking the rate limit status does not count against any limit.

        Args:
            category: Rate limit pool (core, search, graphql, ...)

        Returns:
            Seconds slept (0 when quota was available)
        """
        return self._governor.wait_for_rate_limit(category)

    def supports(self, name: str) -> bool:
        """Check whether the underlying githubkit client provides an operation."""
        return self._dispatcher.supports(name)

    def invoke(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Call an operation by name with rate limiting and retries."""
        return self._dispatcher.invoke(name, *args, **kwargs)

    def paginate(self, name: str, *args: Any, **kwargs: Any) -> list[Any]:
        """Call a list operation and collect every page (100 per page)."""
        return self._dispatcher.paginate(name, *args, **kwargs)

    def close(self) -> None:
        """Drop the current installation session."""
        self._sessions.close()

    def __enter__(self) -> GitHubApp:
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()

    def __getattr__(self, name: str) -> OperationProxy:
        """Forward unknown attributes to the githubkit client as dispatched operations."""
        if name.startswith("_"):
            raise AttributeError(name)
        if not self._dispatcher.supports(name):
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
        return OperationProxy(self._dispatcher, name)
