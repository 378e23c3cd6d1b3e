"""Logging setup for the CLI and library code."""

from __future__ import annotations

import logging
from typing import Optional


# Third-party loggers that are only useful at WARNING and above.
QUIET_LOGGERS = ("httpx", "httpcore", "PIL")


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; unknown level names fall back to INFO."""
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # Signed storage URLs carry tokens in query params.
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)
