"""
Short-lived admin notices.

A notice is shown once: ``collect`` hands back whatever is still alive and
empties the queue. Notices nobody collects expire after ``ttl_seconds``.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List


NOTICE_SUCCESS = "success"
NOTICE_ERROR = "error"


@dataclass(frozen=True)
class Notice:
    type: str
    message: str
    created_at: float

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "message": self.message}


class NoticeQueue:
    """In-memory, TTL bound notice queue shared by the admin endpoints."""

    def __init__(self, ttl_seconds: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._notices: List[Notice] = []

    def push(self, notice_type: str, message: str) -> None:
        if notice_type not in (NOTICE_SUCCESS, NOTICE_ERROR):
            raise ValueError(f"Unknown notice type: {notice_type}")
        now = self._clock()
        with self._lock:
            self._prune(now)
            self._notices.append(Notice(notice_type, message, now))

    def success(self, message: str) -> None:
        self.push(NOTICE_SUCCESS, message)

    def error(self, message: str) -> None:
        self.push(NOTICE_ERROR, message)

    def collect(self) -> List[Notice]:
        """Return live notices and clear the queue."""
        now = self._clock()
        with self._lock:
            live = self._notices
            self._notices = []
        return [notice for notice in live if now - notice.created_at <= self.ttl_seconds]

    def pending(self) -> int:
        """Number of notices held, expired ones included until the next push."""
        with self._lock:
            return len(self._notices)

    def _prune(self, now: float) -> None:
        self._notices = [notice for notice in self._notices if now - notice.created_at <= self.ttl_seconds]
