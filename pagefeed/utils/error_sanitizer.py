"""
Error message sanitization utility.

Keeps stack traces, file paths, SQL fragments and credentials out of HTTP
error bodies. The full error is logged; the client gets a short message.
"""

from __future__ import annotations

import re

from pagefeed.observability.logging import get_logger

logger = get_logger(__name__)

SENSITIVE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        # File paths
        r"/[^\s]+\.py",
        r"[A-Za-z]:\\[^\s]+",
        # Stack trace indicators
        r"Traceback \(most recent call last\)",
        r"File \".*\"",
        # Database errors
        r"sqlite3?\.",
        r"no such table",
        r"database is locked",
        # Tokens, webhook URLs, secrets
        r"[A-Za-z0-9_-]{32,}",
        r"Bearer [A-Za-z0-9._-]+",
        r"discord(app)?\.com/api/webhooks",
        r"oauth_",
        # Internal module names
        r"pagefeed\.[a-z_.]+",
    )
]

GENERIC_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    401: "Unauthorized",
    404: "Resource not found.",
    422: "Invalid data format.",
    500: "Internal Server Error",
    503: "Storage temporarily unavailable.",
}


def sanitize_error_message(message: str, status_code: int = 500) -> str:
    """
    Sanitize an error message to prevent information leakage.

    Short, single-line client errors (4xx) pass through unchanged when they
    match no sensitive pattern; everything else becomes the generic message
    for the status code.
    """
    generic = GENERIC_MESSAGES.get(status_code, "An error occurred.")
    if not message:
        return generic

    for pattern in SENSITIVE_PATTERNS:
        if pattern.search(message):
            logger.warning("Sanitized sensitive error pattern: %s", pattern.pattern)
            return generic

    if 400 <= status_code < 500 and len(message) < 200 and "\n" not in message:
        return message

    return generic


def get_safe_error_detail(error: Exception, status_code: int = 500) -> str:
    """Log the full error and return a client-safe detail string."""
    logger.error("Error (status=%d): %s - %s", status_code, type(error).__name__, str(error))
    return sanitize_error_message(str(error), status_code)
