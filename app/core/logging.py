"""
Logging utilities for the SmartThings OAuth bridge.

Provides a consistent logging format and a helper for masking credentials.
"""

import logging
import sys

_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    if level.upper() != "DEBUG":
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def mask_token(token: str | None, visible: int = 20) -> str:
    """Return a log-safe prefix of a bearer credential."""
    if not token:
        return "<none>"
    return f"{token[:visible]}..."


__all__ = ["configure_logging", "mask_token"]
