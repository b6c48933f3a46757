"""Logging setup and the log-field helpers the relay client relies on.

The library never configures structlog on import; applications call
``configure_logging`` once at startup.
"""

import logging
import sys
from typing import Any

import structlog

# Relay error bodies are logged up to this many characters
MAX_BODY_SIZE = 1024


class ErrorType:
    """Values of the ``error_type`` field on failure log lines."""

    # Relay transport
    API_TIMEOUT = "API_TIMEOUT"
    API_ERROR = "API_ERROR"
    API_CONNECTION_FAILED = "API_CONNECTION_FAILED"

    # Local signers
    SIGNING_FAILED = "SIGNING_FAILED"

    # Permission registry
    PERMISSION_REVERTED = "PERMISSION_REVERTED"


def redact_authorization(headers: dict[str, str]) -> dict[str, str]:
    """Return a copy of request headers safe to log.

    A cancel signature is a bearer credential for that order, so only the
    scheme of the ``authorization`` header is kept.
    """
    redacted = {}
    for name, value in headers.items():
        if name.lower() == "authorization":
            scheme, _, credential = value.partition(" ")
            value = f"{scheme} ***" if credential else "***"
        redacted[name] = value
    return redacted


def truncate_body(body: str, max_size: int = MAX_BODY_SIZE) -> str:
    """Cut a response body down to ``max_size`` characters for logging."""
    overflow = len(body) - max_size
    if overflow <= 0:
        return body
    return f"{body[:max_size]}... [TRUNCATED {overflow} chars]"


def configure_logging(json_output: bool = True, level: int = logging.INFO) -> None:
    """Configure structlog to write to stdout.

    Args:
        json_output: Render JSON lines (True) or the colored console format
        level: Minimum level emitted; request traces are logged at DEBUG
    """
    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
