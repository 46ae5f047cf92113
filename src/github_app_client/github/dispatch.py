"""Routing of arbitrary githubkit operations through rate limiting and retries.

Operations are addressed by name. A name is one of:

- an Octokit-style alias such as ``search_issues`` (see OPERATION_ALIASES)
- an HTTP verb (``get``, ``post``, ...) bound to ``GitHub.request``
- any dotted attribute path on the githubkit client, e.g.
  ``rest.issues.list_for_repo`` or ``graphql``

Capability checks and invocation resolve names through the same table so
the two cannot disagree.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from functools import partial
from operator import attrgetter
from typing import TYPE_CHECKING, Any

from github_app_client.logging import get_logger

from .exceptions import is_secondary_rate_limit
from .rate_limit.schemas import RateLimitPool

if TYPE_CHECKING:
    from loguru import Logger

    from .rate_limit.governor import RateLimitGovernor
    from .retry import RetryEngine
    from .session import SessionManager

logger = get_logger(__name__)

OPERATION_ALIASES: dict[str, str] = {
    "rate_limit": "rest.rate_limit.get",
    "search_code": "rest.search.code",
    "search_commits": "rest.search.commits",
    "search_issues": "rest.search.issues_and_pull_requests",
    "search_labels": "rest.search.labels",
    "search_repositories": "rest.search.repos",
    "search_topics": "rest.search.topics",
    "search_users": "rest.search.users",
}

HTTP_VERBS = frozenset({"get", "post", "put", "patch", "delete", "head"})

# Search issues is the endpoint GitHub guards with secondary rate limits
SECONDARY_LIMIT_OPERATIONS = frozenset({"rest.search.issues_and_pull_requests"})
SECONDARY_LIMIT_COOLDOWN = 60

RETRY_OPT_OUT = "disable_retry"

_SEARCH_PATTERN = re.compile(r"search[_.]")
_GRAPHQL_PATTERN = re.compile(r"graphql")
_GRAPHQL_PATH = "/graphql"


def canonical_name(name: str) -> str:
    """Expand an alias to its githubkit attribute path."""
    return OPERATION_ALIASES.get(name, name)


def _is_graphql_post(name: str, args: tuple[Any, ...]) -> bool:
    if name == "post" and args:
        path = args[0]
    elif name == "request" and len(args) >= 2 and str(args[0]).upper() == "POST":
        path = args[1]
    else:
        return False
    return isinstance(path, str) and _GRAPHQL_PATH in path


def classify_operation(name: str, args: tuple[Any, ...] = ()) -> RateLimitPool:
    """Determine which rate limit pool an operation draws from.

    First match wins: search operations, graphql operations, generic POSTs
    to the graphql endpoint, then core.
    """
    if _SEARCH_PATTERN.search(name):
        return RateLimitPool.SEARCH
    if _GRAPHQL_PATTERN.search(name):
        return RateLimitPool.GRAPHQL
    if _is_graphql_post(name, args):
        return RateLimitPool.GRAPHQL
    return RateLimitPool.CORE


def resolve_operation(github: Any, name: str) -> Any:
    """Look up an operation on a githubkit client.

    Raises:
        AttributeError: If the client has no such operation
    """
    if name in HTTP_VERBS:
        return partial(github.request, name.upper())
    return attrgetter(canonical_name(name))(github)


class CallDispatcher:
    """Applies rate limit governance and retries to githubkit calls.

    Usage:
        dispatcher = CallDispatcher(sessions, governor, retry)
        if dispatcher.supports("search_issues"):
            resp = dispatcher.invoke("search_issues", q="is:open repo:owner/name")
    """

    def __init__(
        self,
        sessions: SessionManager,
        governor: RateLimitGovernor,
        retry: RetryEngine,
        *,
        sleep: Callable[[float], None] = time.sleep,
        log: Logger | None = None,
    ) -> None:
        self._sessions = sessions
        self._governor = governor
        self._retry = retry
        self._sleep = sleep
        self._log = log or logger

    def supports(self, name: str) -> bool:
        """Check whether the underlying client provides an operation."""
        try:
            resolve_operation(self._sessions.capability_client(), name)
        except AttributeError:
            return False
        return True

    def invoke(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Call an operation with rate limiting and retries.

        Pass ``disable_retry=True`` to make exactly one attempt; the flag is
        never forwarded to githubkit.
        """
        self._require_supported(name)
        disable_retry = bool(kwargs.pop(RETRY_OPT_OUT, False))
        category = classify_operation(name, args)

        def request() -> Any:
            self._governor.wait_for_rate_limit(category)
            operation = resolve_operation(self._sessions.client, name)
            return operation(*args, **kwargs)

        return self._run(name, request, disable_retry=disable_retry)

    def paginate(self, name: str, *args: Any, **kwargs: Any) -> list[Any]:
        """Call a list operation and collect every page.

        ``per_page`` defaults to the session page size (100).
        """
        self._require_supported(name)
        disable_retry = bool(kwargs.pop(RETRY_OPT_OUT, False))
        category = classify_operation(name, args)

        def request() -> list[Any]:
            self._governor.wait_for_rate_limit(category)
            github = self._sessions.client
            session = self._sessions.session
            if session is not None:
                kwargs.setdefault("per_page", session.per_page)
            operation = resolve_operation(github, name)
            return list(github.paginate(partial(operation, *args), **kwargs))

        return self._run(name, request, disable_retry=disable_retry)

    def _require_supported(self, name: str) -> None:
        if not self.supports(name):
            raise AttributeError(f"GitHub client has no operation {name!r}")

    def _run(self, name: str, request: Callable[[], Any], *, disable_retry: bool) -> Any:
        try:
            if disable_retry:
                return request()
            return self._retry.execute(request)
        except Exception as e:
            # Cool down, then let the caller decide whether to call again
            if canonical_name(name) in SECONDARY_LIMIT_OPERATIONS and is_secondary_rate_limit(e):
                self._log.warning(
                    "GitHub secondary rate limit hit, sleeping for {} seconds",
                    SECONDARY_LIMIT_COOLDOWN,
                )
                self._sleep(SECONDARY_LIMIT_COOLDOWN)
            raise


class OperationProxy:
    """A partially resolved operation path, e.g. ``app.rest.issues``.

    Attribute access extends the path; calling it dispatches the call.
    """

    def __init__(self, dispatcher: CallDispatcher, path: str) -> None:
        self._dispatcher = dispatcher
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def __getattr__(self, name: str) -> OperationProxy:
        if name.startswith("_"):
            raise AttributeError(name)
        path = f"{self._path}.{name}"
        if not self._dispatcher.supports(path):
            raise AttributeError(f"GitHub client has no operation {path!r}")
        return OperationProxy(self._dispatcher, path)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._dispatcher.invoke(self._path, *args, **kwargs)

    def __repr__(self) -> str:
        return f"OperationProxy({self._path!r})"
