"""Logging setup: JSON lines in production, readable console output otherwise."""

import json
import logging
from datetime import datetime, timezone

from devdox.config import Settings

CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["stack"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(settings: Settings) -> logging.Logger:
    """Install a single stream handler on the devdox logger.

    Safe to call more than once; earlier handlers are replaced.
    """
    logger = logging.getLogger("devdox")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if settings.log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(settings.log_level)
    return logger
