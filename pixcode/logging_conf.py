"""Application logging configuration helpers."""
from __future__ import annotations

import json
import logging
from logging.config import dictConfig
from typing import Any

from .config import LoggingConfig, settings

_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line, merging ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - overrides base
        payload: dict[str, Any] = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update({k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Configure global logging based on settings."""

    config = config or settings.logging
    formatter: dict[str, Any] = (
        {"()": JsonFormatter}
        if config.json_logs
        else {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"}
    )

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {
                "default": {
                    "level": config.level,
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                }
            },
            "loggers": {
                "": {"handlers": ["default"], "level": config.level},
                "pixcode": {"level": config.level, "propagate": True},
            },
        }
    )
