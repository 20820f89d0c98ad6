"""Logging setup for the monitoring service.

Every record goes through one stream handler. Reading fields and store
context passed via ``extra`` are appended as ``key=value`` pairs, so a device
submission shows up as a single greppable line.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict, Iterable, Mapping, Sequence

from settings import get_settings

_DEFAULT_EXTRA_KEYS = (
    "temperature",
    "level_percent",
    "ntu",
    "level_status",
    "turb_status",
    "history_key",
    "entry_count",
    "missing_fields",
    "store_backend",
    "store_path",
    "reason",
)

# Wire field name -> log extra key.
_READING_EXTRA_KEYS = {
    "temperature": "temperature",
    "levelPercent": "level_percent",
    "ntu": "ntu",
    "levelStatus": "level_status",
    "turbStatus": "turb_status",
}

_configured = False


def reading_extra(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Map a wire-format reading to the ``extra`` keys the formatter prints."""
    return {
        extra_key: fields[wire_key]
        for wire_key, extra_key in _READING_EXTRA_KEYS.items()
        if wire_key in fields
    }


class ContextualFormatter(logging.Formatter):

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context_parts: list[str] = []
        for key in self._extra_keys:
            if not hasattr(record, key):
                continue
            value = getattr(record, key, None)
            if value is None:
                continue
            context_parts.append(f"{key}={value}")
        if context_parts:
            return f"{message} | {' '.join(context_parts)}"
        return message


def configure_logging(level: str | int | None = None) -> None:
    """Configure application-wide logging with contextual formatting."""
    global _configured
    if _configured:
        return

    log_level = level if level is not None else get_settings().log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_DEFAULT_EXTRA_KEYS),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
