"""Private key resolution for GitHub App authentication.

App keys are downloaded from the App's settings page in PEM format. They
reach the client in one of three shapes:

- a path to the downloaded ``.pem`` file
- the key itself, usually as a single line with newlines escaped as ``\\n``
- nothing, in which case the ``GH_APP_KEY`` environment value is used
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from github_app_client.logging import get_logger

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from loguru import Logger

logger = get_logger(__name__)

KEY_FILE_SUFFIX = ".pem"


def normalize_key_string(key: str) -> str:
    """Turn literal ``\\n`` sequences into real newlines.

    Plain substitution handles runs of consecutive escaped newlines and
    cannot backtrack the way a regex over untrusted input can.
    """
    return key.replace("\\n", "\n")


def read_key_file(path: str | Path, *, log: Logger | None = None) -> str:
    """Read a PEM key file verbatim.

    Raises:
        ConfigurationError: If the file does not exist or is empty
    """
    log = log or logger
    key_path = Path(path)
    if not key_path.is_file():
        raise ConfigurationError(f"App key file not found: {key_path}")

    log.debug("Loading app key from file: {}", key_path)
    content = key_path.read_text()
    if not content.strip():
        raise ConfigurationError(f"App key file is empty: {key_path}")

    log.debug("Successfully loaded app key from file ({} characters)", len(content))
    return content


def resolve_private_key(
    value: str | None,
    *,
    env_value: str | None = None,
    log: Logger | None = None,
) -> str:
    """Resolve the App private key from a path, an inline string or the environment.

    Args:
        value: Explicit key material or ``.pem`` path (may be None)
        env_value: Fallback from the ``GH_APP_KEY`` environment variable
        log: Logger for progress messages (defaults to the module logger)

    Returns:
        PEM key text

    Raises:
        ConfigurationError: If the key file is missing/empty or no key is available
    """
    log = log or logger
    if value:
        if value.endswith(KEY_FILE_SUFFIX):
            return read_key_file(value, log=log)

        log.debug("Using provided app key string")
        return normalize_key_string(value)

    if not env_value:
        raise ConfigurationError("environment variable GH_APP_KEY is not set")

    log.debug("Loading app key from environment variable")
    return normalize_key_string(env_value)
