"""Logging helpers.

Modules get their logger through get_logger(__name__). Nothing is printed
until configure_logging() attaches a handler to the package logger, which
keeps the library quiet inside host applications.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from timemap import config

ROOT_LOGGER = "timemap"

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(level: Optional[str] = None, *, json_format: Optional[bool] = None) -> logging.Logger:
    """Attach one stream handler to the package logger.

    Defaults come from TIMEMAP_LOG_LEVEL / TIMEMAP_LOG_JSON. Calling it again
    only updates the level and formatter of the existing handler.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.getLevelName((level or config.LOG_LEVEL).upper()))

    use_json = config.LOG_JSON if json_format is None else json_format
    formatter = JsonFormatter() if use_json else logging.Formatter(_PLAIN_FORMAT)

    handler = next((h for h in logger.handlers if getattr(h, "_timemap", False)), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler._timemap = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    handler.setFormatter(formatter)
    return logger
