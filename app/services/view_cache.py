"""
View Dedup Cache

Process-local, time-windowed record of when each article last had a view
counted. The increment endpoint consults it to suppress repeated increments
for the same article inside the throttle window.

Design:
- One instance per process, created on startup and injected into requests
  (see app.core.cache_manager); tests construct their own
- Check-and-record is a single step under a lock, so two in-flight
  requests for the same article cannot both pass the throttle check
- A claim can be released if the increment it guarded did not happen
  (unknown article, store failure)
- Not persisted: a restart can count at most one extra view per article
"""

import logging
import threading
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class ViewDedupCache:
    """
    Maps article id -> clock timestamp of the last accepted increment.

    Entries older than the throttle window are expired: they no longer
    throttle anything and are removed by prune() once the cache grows past
    the high-water mark.
    """

    def __init__(
        self,
        window_seconds: float = 60.0,
        high_water_mark: int = 1000,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the cache.

        Args:
            window_seconds: Throttle window (default: 60 seconds)
            high_water_mark: Size above which expired entries are pruned
            clock: Returns the current time in seconds; injectable for tests
        """
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if high_water_mark < 0:
            raise ValueError("high_water_mark must not be negative")

        self.window_seconds = window_seconds
        self.high_water_mark = high_water_mark
        self.clock = clock

        self._entries: Dict[str, float] = {}
        self._lock = threading.Lock()

        self._throttled_total = 0
        self._pruned_total = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, content_id: str) -> bool:
        with self._lock:
            return content_id in self._entries

    def _is_fresh(self, timestamp: float, now: float) -> bool:
        return now - timestamp < self.window_seconds

    def claim(self, content_id: str) -> Optional[float]:
        """
        Try to claim the right to count a view for an article.

        If the article has a fresh entry, the claim fails. Otherwise the
        entry is set to the current time.

        Args:
            content_id: Article id (already validated)

        Returns:
            The claim timestamp on success (pass it to release()), None if
            the article is throttled
        """
        now = self.clock()
        with self._lock:
            timestamp = self._entries.get(content_id)
            if timestamp is not None and self._is_fresh(timestamp, now):
                self._throttled_total += 1
                return None
            self._entries[content_id] = now
            return now

    def release(self, content_id: str, claimed_at: float) -> bool:
        """
        Undo a claim whose increment did not happen.

        The entry is only removed if it still holds this claim's timestamp,
        so a newer claim is never discarded.

        Returns:
            True if the entry was removed
        """
        with self._lock:
            if self._entries.get(content_id) == claimed_at:
                del self._entries[content_id]
                return True
            return False

    def prune(self) -> int:
        """
        Remove every expired entry. O(cache size).

        Returns:
            Number of entries removed
        """
        now = self.clock()
        with self._lock:
            expired = [
                content_id
                for content_id, timestamp in self._entries.items()
                if not self._is_fresh(timestamp, now)
            ]
            for content_id in expired:
                del self._entries[content_id]
            self._pruned_total += len(expired)
            remaining = len(self._entries)

        if expired:
            logger.debug(f"Pruned {len(expired)} expired view cache entries, {remaining} remain")
        return len(expired)

    def prune_if_needed(self) -> int:
        """Prune only when the cache has grown past the high-water mark."""
        with self._lock:
            over = len(self._entries) > self.high_water_mark
        if not over:
            return 0
        return self.prune()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                "tracked": len(self._entries),
                "throttled": self._throttled_total,
                "pruned": self._pruned_total,
                "window_seconds": self.window_seconds,
                "high_water_mark": self.high_water_mark,
            }
