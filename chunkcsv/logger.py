"""
JSON log formatting for the chunkcsv logger tree.

Modules log through logging.getLogger(__name__); setup_logger() attaches a
single stdout handler to the "chunkcsv" parent logger.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_INTERNAL_KEYS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # extra={...} fields from the log call
        for key, value in record.__dict__.items():
            if key not in _INTERNAL_KEYS:
                log_obj[key] = value

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str, ensure_ascii=False)


def setup_logger(level: str = "INFO", name: str = "chunkcsv") -> logging.Logger:
    log = logging.getLogger(name)
    log.setLevel(level)

    # avoid duplicate handlers on reimport
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        log.addHandler(handler)

    return log
