"""
In-process cache for paginated, sorted note listings.

Entries are keyed by (user, page, sort order), expire after a TTL and are
dropped wholesale for a user after any write to that user's notes.

The cache is per process. With several workers each one holds its own copy,
so an invalidation in one worker is not seen by the others; staleness there
is bounded by the TTL.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel

from .models import NoteSummary, Pagination, SortOrder

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_SIZE = 100
DEFAULT_CLEANUP_INTERVAL_SECONDS = 5 * 60


@dataclass(frozen=True)
class CacheEntry:
    key: str
    owner: str
    page: int
    sort: str
    notes: List[NoteSummary]
    pagination: Pagination
    saved_at: float


class CacheStats(BaseModel):
    """Snapshot of cache counters"""
    hits: int
    misses: int
    size: int
    last_cleanup: datetime
    hit_rate: float


def cache_key(user_id: str, page: int, sort: SortOrder | str) -> str:
    sort_value = sort.value if isinstance(sort, SortOrder) else str(sort)
    return f"{user_id}:{page}:{sort_value}"


class PeriodicCleanup:
    """Background thread that calls a function every `interval` seconds until stopped."""

    def __init__(self, interval: float, func: Callable[[], object]):
        self.interval = interval
        self.func = func
        self._stopped = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="listing-cache-cleanup", daemon=True
        )

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.interval)

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self._stopped.is_set()

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            self.func()


class ListingCache:
    """
    TTL cache of note listing pages with per-user invalidation.

    When full, `set` sweeps expired entries first; if every entry is still
    fresh the new entry is rejected and `set` returns False. Fresh entries
    are never evicted to make room.

    Args:
        ttl_seconds: Maximum age of an entry before it is treated as a miss
        max_size: Maximum number of entries held at once
        cleanup_interval: Seconds between background sweeps; None disables the thread
        clock: Monotonic time source in seconds (tests inject a fake)
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        cleanup_interval: Optional[float] = DEFAULT_CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._last_cleanup = datetime.now(UTC)

        self._cleanup_task: Optional[PeriodicCleanup] = None
        if cleanup_interval:
            self._cleanup_task = PeriodicCleanup(cleanup_interval, self.cleanup)
            self._cleanup_task.start()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, user_id: str, page: int, sort: SortOrder | str) -> Optional[CacheEntry]:
        key = cache_key(user_id, page, sort)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._expired(entry, self.clock()):
                del self._entries[key]
                self._misses += 1
                return None

            self._hits += 1
            return replace(entry, notes=list(entry.notes))

    def set(
        self,
        user_id: str,
        page: int,
        sort: SortOrder | str,
        notes: List[NoteSummary],
        pagination: Pagination,
    ) -> bool:
        """
        Store a listing page.

        Returns:
            True if stored, False if rejected because the cache is full of fresh entries
        """
        key = cache_key(user_id, page, sort)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                self.cleanup()
                if len(self._entries) >= self.max_size:
                    logger.warning(
                        "Listing cache full (%d fresh entries), not caching %s",
                        len(self._entries),
                        key,
                    )
                    return False

            self._entries[key] = CacheEntry(
                key=key,
                owner=user_id,
                page=page,
                sort=sort.value if isinstance(sort, SortOrder) else str(sort),
                notes=list(notes),
                pagination=pagination,
                saved_at=self.clock(),
            )
            return True

    def invalidate_user(self, user_id: str) -> int:
        with self._lock:
            stale = [key for key, entry in self._entries.items() if entry.owner == user_id]
            for key in stale:
                del self._entries[key]

        if stale:
            logger.info("Invalidated %d cached listing(s) for user %s", len(stale), user_id)
        return len(stale)

    def invalidate_note(self, user_id: str, note_id: str) -> int:
        # Listings are not indexed by note, so drop everything the owner has cached.
        removed = self.invalidate_user(user_id)
        logger.debug("Invalidated listings for note %s", note_id)
        return removed

    def cleanup(self) -> int:
        """Remove every expired entry regardless of owner."""
        with self._lock:
            now = self.clock()
            expired = [key for key, entry in self._entries.items() if self._expired(entry, now)]
            for key in expired:
                del self._entries[key]
            self._last_cleanup = datetime.now(UTC)

        if expired:
            logger.info("Listing cache cleanup removed %d expired entries", len(expired))
        return len(expired)

    def get_stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                last_cleanup=self._last_cleanup,
                hit_rate=self._hits / total if total > 0 else 0.0,
            )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._last_cleanup = datetime.now(UTC)
        logger.info("Listing cache cleared")

    def close(self) -> None:
        """Stop the background cleanup thread, if any."""
        if self._cleanup_task is not None:
            self._cleanup_task.stop()
            self._cleanup_task = None

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.saved_at > self.ttl_seconds
