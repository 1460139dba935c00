"""Logging setup for the popup service.

One stdout handler on the root logger; modules log snake_case event names
with structured ``extra`` fields.  Chatty client/server libraries are held
at WARNING so each visit logs only the popup decision itself.
"""

import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# Libraries that log every request/connection at INFO.
_QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "uvicorn.access")


def _resolve_level(level: str | None) -> int:
    name = (level or settings.LOG_LEVEL).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: str | None = None) -> None:
    """Install the service log handler on the root logger.

    *level* overrides ``settings.LOG_LEVEL``; unknown names fall back to
    INFO.  Calling this again replaces the handler instead of adding one.
    """
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
