"""
Logging for the 'capkeo' logger.

The stores and the API client log through `logging.getLogger("capkeo")` and never
configure it themselves. Applications embedding the client call `setup_logging` once
(usually with `Settings.log_level`); the sandbox app does so on creation.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s | %(message)s"

UVICORN_LOGGERS = ["uvicorn", "uvicorn.access", "uvicorn.error"]


class UTCFormatter(logging.Formatter):
    """ISO-8601 UTC timestamps, so client and sandbox logs line up."""

    def formatTime(self, record, datefmt=None):
        created = datetime.fromtimestamp(record.created, timezone.utc)
        if datefmt:
            return created.strftime(datefmt)
        return created.isoformat(timespec="milliseconds")


class _CapkeoHandler(logging.StreamHandler):
    """Marks the handler this module installed, so a second setup replaces only it."""


def setup_logging(
    level: str = "INFO",
    stream: Optional[TextIO] = None,
    route_uvicorn: bool = False,
) -> logging.Logger:
    """
    Attach a console handler to the 'capkeo' logger.

    Handlers added by the host application are left alone. With `route_uvicorn` the
    uvicorn loggers write through the same handler (used by the sandbox server).
    """
    logger = logging.getLogger("capkeo")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in [h for h in logger.handlers if isinstance(h, _CapkeoHandler)]:
        logger.removeHandler(handler)

    handler = _CapkeoHandler(stream or sys.stdout)
    handler.setFormatter(UTCFormatter(fmt=LOG_FORMAT))
    logger.addHandler(handler)

    if route_uvicorn:
        for name in UVICORN_LOGGERS:
            uvicorn_logger = logging.getLogger(name)
            uvicorn_logger.handlers.clear()
            uvicorn_logger.addHandler(handler)

    return logger
