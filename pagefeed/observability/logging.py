from __future__ import annotations

import logging
import os
from typing import Final

_CONFIGURED: bool = False
_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at INFO (connection pool, oauth signing)
_QUIET_LOGGERS: Final[tuple[str, ...]] = ("urllib3", "requests_oauthlib", "oauthlib")


def resolve_level(level_name: str | None = None) -> int:
    name = (level_name or os.getenv("PAGEFEED_LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(level_name: str | None = None) -> int:
    """Attach the pagefeed stream handler to the root logger once.

    Returns:
        The effective log level

    Side Effects:
        - Adds a StreamHandler to the root logger on first call
        - Sets root and third-party logger levels
    """
    global _CONFIGURED

    level = resolve_level(level_name)
    root = logging.getLogger()

    if not _CONFIGURED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
        _CONFIGURED = True

    root.setLevel(level)
    for noisy in _QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))
    return level


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; configures the root handler on first use."""
    level = configure_logging()
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
