"""
User-facing notices.

Engines report every accepted action and every refused one through a
Notifier: a callable taking ``(level, message)`` whose return value is
ignored. The presentation layer decides how notices are shown.
"""

import logging
from typing import Callable

logger = logging.getLogger(__name__)

SUCCESS = "success"
INFO = "info"
ERROR = "error"

Notifier = Callable[[str, str], None]

_LOG_LEVELS = {
    SUCCESS: logging.INFO,
    INFO: logging.INFO,
    ERROR: logging.WARNING,
}


def log_notifier(level: str, message: str) -> None:
    """Default notifier: route notices to the log."""
    logger.log(_LOG_LEVELS.get(level, logging.INFO), f"[{level}] {message}")
