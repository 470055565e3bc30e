"""
Per-student hours summary cache

Entries expire after a TTL, but expiry is only a backstop: every payment
write evicts the affected students explicitly before returning.
"""
import logging
import threading
import time
from functools import lru_cache
from typing import Callable

from hourledger.config import get_settings
from hourledger.domain.summary import HoursSummary

logger = logging.getLogger(__name__)


class InMemorySummaryCache:
    """Process-wide map student_id -> (stored_at, summary); last write wins."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[int, tuple[float, HoursSummary]] = {}
        self._lock = threading.Lock()

    def get(self, student_id: int) -> HoursSummary | None:
        with self._lock:
            entry = self._entries.get(student_id)
            if entry is None:
                return None
            stored_at, summary = entry
            if self._clock() - stored_at >= self._ttl:
                del self._entries[student_id]
                logger.debug("Summary cache expired for student_id=%s", student_id)
                return None
            return summary

    def set(self, student_id: int, summary: HoursSummary) -> None:
        with self._lock:
            self._entries[student_id] = (self._clock(), summary)

    def evict(self, student_id: int) -> None:
        with self._lock:
            if self._entries.pop(student_id, None) is not None:
                logger.debug("Summary cache evicted for student_id=%s", student_id)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


@lru_cache
def get_summary_cache() -> InMemorySummaryCache:
    """
    Shared cache instance (singleton)
    """
    return InMemorySummaryCache(ttl_seconds=get_settings().SUMMARY_CACHE_TTL_SECONDS)
