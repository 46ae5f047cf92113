"""GitHub App client with token refreshing, retries and rate limiting."""

from .github import GitHubApp

__version__ = "0.1.0"

__all__ = ["GitHubApp", "__version__"]
