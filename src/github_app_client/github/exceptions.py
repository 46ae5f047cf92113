"""GitHub App client exceptions."""

from githubkit.exception import SecondaryRateLimitExceeded

SECONDARY_RATE_LIMIT_MESSAGE = "exceeded a secondary rate limit"


class GitHubAppError(Exception):
    """Base exception for GitHub App client errors."""

    pass


class ConfigurationError(GitHubAppError):
    """Raised when an identity input is missing or invalid."""

    pass


class CredentialError(GitHubAppError):
    """Raised when the private key cannot be parsed or used for signing."""

    pass


class AuthenticationError(GitHubAppError):
    """Raised when the JWT cannot be exchanged for an installation token."""

    pass


class TransientRequestError(GitHubAppError):
    """Base class for downstream failures that are worth retrying.

    The retry engine retries any exception other than the configuration,
    credential and authentication errors above; this class exists so that
    callers and collaborators can signal a retryable failure explicitly.
    """

    pass


class SecondaryRateLimitError(TransientRequestError):
    """Raised when GitHub reports a secondary (abuse) rate limit."""

    pass


# Retrying with the same bad input cannot succeed
NON_RETRYABLE_ERRORS: tuple[type[GitHubAppError], ...] = (
    ConfigurationError,
    CredentialError,
    AuthenticationError,
)


def is_secondary_rate_limit(error: BaseException) -> bool:
    """Check whether an error signals a secondary rate limit.

    githubkit raises ``SecondaryRateLimitExceeded`` when it recognizes the
    limit itself. Other ``RequestFailed`` errors do not always carry the
    response body in their string form, so the response text is checked too.
    """
    if isinstance(error, (SecondaryRateLimitError, SecondaryRateLimitExceeded)):
        return True
    if SECONDARY_RATE_LIMIT_MESSAGE in str(error):
        return True
    response = getattr(error, "response", None)
    text = getattr(response, "text", None)
    return isinstance(text, str) and SECONDARY_RATE_LIMIT_MESSAGE in text
