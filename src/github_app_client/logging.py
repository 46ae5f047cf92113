"""Centralized logging configuration using loguru.

Provides:
- Configurable log levels from Settings
- Verbose/quiet overrides
- Standard library interception (httpx, httpcore used by githubkit)
- Redaction of private keys, JWTs and GitHub tokens from every message
- Optional file rotation logging
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger, Record

# Type alias for log levels
LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

REDACTED = "[REDACTED]"

# Module-level flag to track if logging has been configured
_configured = False

# Literal secrets registered at runtime (installation tokens, assertions)
_secrets: set[str] = set()

_SECRET_PATTERNS = (
    re.compile(
        r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----",
        re.DOTALL,
    ),
    re.compile(r"\beyJ[\w-]+\.eyJ[\w-]+\.[\w-]+"),
    re.compile(r"\bgh[pousr]_[A-Za-z0-9]{16,}"),
    re.compile(r"\bgithub_pat_\w{16,}"),
)


class InterceptHandler(logging.Handler):
    """Handler to intercept standard library logging and route to loguru.

    This enables control over httpx and other library logs.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Route stdlib log record to loguru."""
        from types import FrameType

        # Get corresponding loguru level
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = str(record.levelno)

        # Find caller from where originated the logged message
        frame: FrameType | None = logging.currentframe()
        depth = 2
        while frame is not None:
            if frame.f_code.co_filename != logging.__file__:
                break
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def register_secret(value: str) -> None:
    """Register a literal value that must never reach a log sink."""
    if value:
        _secrets.add(value)


def forget_secret(value: str) -> None:
    """Stop tracking a literal that is no longer in use."""
    _secrets.discard(value)


def redact(message: str) -> str:
    """Replace known secrets and secret-shaped strings with a placeholder.

    Registered literals are replaced with ``str.replace``; the patterns
    only cover well-delimited token formats.
    """
    for secret in _secrets:
        if secret in message:
            message = message.replace(secret, REDACTED)
    for pattern in _SECRET_PATTERNS:
        message = pattern.sub(REDACTED, message)
    return message


def _redact_record(record: Record) -> None:
    record["message"] = redact(record["message"])


def with_redaction(log: Logger) -> Logger:
    """Wrap a loguru logger so its messages are redacted before any sink.

    Only the returned logger is patched; global loguru state is untouched.
    """
    return log.patch(_redact_record)


def install_default_sink(level: LogLevel = "INFO") -> bool:
    """Replace loguru's stock stderr handler with one at ``level``.

    Does nothing when the stock handler is already gone, i.e. when the
    host application (or ``setup_logging``) has configured loguru itself.
    Other sinks and stdlib handlers are never touched.

    Returns:
        True if the default sink was installed
    """
    try:
        logger.remove(0)
    except ValueError:
        return False

    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<dim>{time:HH:mm:ss}</dim> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        diagnose=False,
    )
    return True


def setup_logging(
    level: LogLevel = "INFO",
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> Logger:
    """Configure logging for the application.

    Args:
        level: Base log level from config
        verbose: If True, use DEBUG level (overrides level)
        quiet: If True, use WARNING level (overrides level)
        log_file: Optional path for file logging with rotation
        rotation: When to rotate log file (e.g., "10 MB", "1 day")
        retention: How long to keep rotated logs
        serialize: If True, output JSON format (useful for file logs)

    Returns:
        Configured logger instance

    Note:
        verbose takes precedence over quiet if both are True.
    """
    global _configured

    # Determine effective level
    effective_level: LogLevel
    if verbose:
        effective_level = "DEBUG"
    elif quiet:
        effective_level = "WARNING"
    else:
        effective_level = level

    # Clear any existing handlers
    logger.remove()

    # Every record passes through redaction before any sink sees it
    logger.configure(patcher=_redact_record)

    # Console handler with formatting
    logger.add(
        sys.stderr,
        level=effective_level,
        format=(
            "<dim>{time:HH:mm:ss}</dim> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[name]}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=True,
        diagnose=False,
        filter=lambda record: "name" in record["extra"],
    )

    # Fallback handler for logs without 'name' extra (e.g., from intercepted stdlib)
    logger.add(
        sys.stderr,
        level=effective_level,
        format=(
            "<dim>{time:HH:mm:ss}</dim> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=True,
        diagnose=False,
        filter=lambda record: "name" not in record["extra"],
    )

    # Optional file handler with rotation
    if log_file:
        logger.add(
            log_file,
            level="DEBUG",  # Always capture everything to file
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[name]}:{function}:{line} | "
                "{message}"
            ),
            rotation=rotation,
            retention=retention,
            compression="gz",
            serialize=serialize,
            diagnose=False,
            filter=lambda record: "name" in record["extra"],
        )

    # Intercept standard library logging
    _intercept_stdlib_logging(effective_level)

    _configured = True
    return logger


def _intercept_stdlib_logging(level: LogLevel) -> None:
    """Intercept standard library loggers and route to loguru.

    This captures logs from httpx/httpcore (used by githubkit) and any
    other library using stdlib logging.
    """
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # httpx: generally quiet unless DEBUG
    httpx_level = logging.DEBUG if level in ("TRACE", "DEBUG") else logging.WARNING
    logging.getLogger("httpx").setLevel(httpx_level)
    logging.getLogger("httpcore").setLevel(httpx_level)


def get_logger(name: str) -> Logger:
    """Get a logger with the given name bound as context.

    Usage:
        from github_app_client.logging import get_logger
        logger = get_logger(__name__)
        logger.info("Minting installation token")

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance with name bound and redaction applied
    """
    return with_redaction(logger.bind(name=name))


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured


def reset_logging() -> None:
    """Reset logging state (primarily for testing)."""
    global _configured
    logger.remove()
    logger.configure(patcher=lambda record: None)
    _secrets.clear()
    _configured = False
