"""Bounded, newest-first diagnostic log shown in the debug panel."""

import logging
import threading
from collections import deque
from datetime import datetime, timezone

from .constants import DEBUG_LOG_LIMIT

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DebugLog:
    """Timestamped lines, most recent first, capped at ``limit`` entries."""

    def __init__(self, limit: int = DEBUG_LOG_LIMIT):
        self._lines: deque[str] = deque(maxlen=limit)
        self._lock = threading.Lock()

    def push(self, line: str) -> None:
        with self._lock:
            self._lines.appendleft(f"{now_iso()} | {line}")
        logger.debug(line)

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    def lines(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._lines)
