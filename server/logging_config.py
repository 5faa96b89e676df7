"""
Logging setup for the Golf server.

Production logs one JSON object per line; development logs a colored line
per record. Both carry the room code and seat of the connection being
served, taken from the record's ``extra`` or from the context variables
that the WebSocket handlers set for each connection task.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

room_code_var: ContextVar[Optional[str]] = ContextVar("room_code", default=None)
seat_var: ContextVar[Optional[str]] = ContextVar("seat", default=None)

# Third-party loggers kept at WARNING
QUIET_LOGGERS = ("uvicorn.access", "uvicorn.error", "websockets", "asyncio")


def record_context(record: logging.LogRecord) -> dict[str, str]:
    """Room code, seat and action for a record, skipping whatever is unset."""
    context = {
        "room_code": getattr(record, "room_code", None) or room_code_var.get(),
        "seat": getattr(record, "seat", None) or seat_var.get(),
        "action": getattr(record, "action", None),
    }
    return {key: value for key, value in context.items() if value}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_context(record))

        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno} in {record.funcName}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Colored single-line output with the connection context in brackets."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        level = f"{color}{record.levelname:8}{self.RESET}" if color else f"{record.levelname:8}"
        when = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        millis = int(record.msecs)

        context = record_context(record)
        tag = " [" + " ".join(f"{k}={v}" for k, v in context.items()) + "]" if context else ""

        line = f"{when}.{millis:03d} {level} {record.name}{tag} - {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str = "INFO", environment: str = "development") -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Root log level name; unknown names fall back to INFO.
        environment: ``production`` selects JSON output.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if environment == "production" else DevelopmentFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured: level={level}, environment={environment}")
