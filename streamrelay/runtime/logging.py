"""Logging initialization."""

from __future__ import annotations

import logging

from streamrelay.config.logging import LOG_LEVEL, LOG_FORMAT, SHOW_HTTP_LOGS

_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging() -> None:
    if not SHOW_HTTP_LOGS:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)


__all__ = ["configure_logging"]
