"""Structured key=value logging for the chat and voice services."""

import logging
import sys
from typing import Any

# Request-scoped fields promoted to their own key when passed via ``extra``.
CONTEXT_FIELDS = ("session_id", "user_id")


class StructuredFormatter(logging.Formatter):
    """Renders each record as one ``key=value`` line, traceback appended."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                fields[name] = value
        fields["message"] = record.getMessage()
        fields.update(getattr(record, "extra_data", None) or {})

        line = " ".join(f"{key}={value}" for key, value in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _level_for_env() -> int:
    try:
        from neurocom.core.config import get_settings

        return logging.DEBUG if get_settings().APP_ENV == "dev" else logging.INFO
    except Exception:
        # Scripts may run without the full set of service credentials
        return logging.INFO


def get_logger(name: str) -> logging.Logger:
    """
    Logger writing structured lines to stdout.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger at DEBUG in the dev environment, INFO elsewhere
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.setLevel(_level_for_env())
    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **context: Any) -> None:
    """Log ``msg`` with request context (session_id, user_id, turn_id, ...)."""
    extra: dict[str, Any] = {name: context.pop(name) for name in CONTEXT_FIELDS if name in context}
    extra["extra_data"] = context
    logger.log(level, msg, extra=extra)
