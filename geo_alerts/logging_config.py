"""Centralised logging configuration.

Importing this module applies the default format and the level named by
``LOG_LEVEL`` (INFO when unset). Other modules simply call
`logging.getLogger(__name__)`.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers kept at WARNING
_QUIET_LOGGERS = ("urllib3", "pymongo", "httpx", "openai")


def configure_logging(level: str | int | None = None) -> None:
    """(Re)apply the project's logging setup, e.g. from the command line."""
    level = level or os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


configure_logging()

__all__ = ["logging", "configure_logging", "LOG_FORMAT"]
