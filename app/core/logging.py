import json
import logging
import sys
from datetime import datetime, timezone
from logging.config import dictConfig

from app.core.config import APP_ENV, LOG_FORMAT

LOG_LEVEL = "DEBUG" if APP_ENV == "development" else "INFO"

# Attributes every LogRecord carries; anything else arrived through ``extra=``
_RECORD_KEYS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName", "asctime"}


class ContextFormatter(logging.Formatter):
    """Appends ``extra={...}`` fields to the line, or emits one JSON object per record."""

    def __init__(self, fmt=None, json_lines=False):
        super().__init__(fmt)
        self.json_lines = json_lines

    @staticmethod
    def _context(record: logging.LogRecord) -> dict:
        return {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_KEYS
        }

    def format(self, record: logging.LogRecord) -> str:
        context = self._context(record)

        if self.json_lines:
            payload = {
                "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
                **context,
            }
            if record.exc_info:
                payload["traceback"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        line = super().format(record)
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging():
    formatter = "json" if LOG_FORMAT == "json" else "default"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,

            # -----------------
            # FORMATTERS
            # -----------------
            "formatters": {
                "default": {
                    "()": ContextFormatter,
                    "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                },
                "json": {
                    "()": ContextFormatter,
                    "json_lines": True,
                },
                "access": {
                    "format": (
                        "%(asctime)s | ACCESS | "
                        "%(client_addr)s | %(actor)s | %(method)s | "
                        "%(path)s | %(status_code)s | "
                        "%(process_time_ms)sms"
                    ),
                },
            },

            # -----------------
            # HANDLERS
            # -----------------
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": formatter,
                },
                "access_console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "json" if LOG_FORMAT == "json" else "access",
                },
            },

            # -----------------
            # LOGGERS
            # -----------------
            "loggers": {
                # request_logging_middleware
                "access": {
                    "handlers": ["access_console"],
                    "level": "INFO",
                    "propagate": False,
                },
                "apscheduler": {
                    "level": "WARNING",
                },
            },

            # -----------------
            # ROOT LOGGER
            # -----------------
            "root": {
                "level": LOG_LEVEL,
                "handlers": ["console"],
            },
        }
    )
