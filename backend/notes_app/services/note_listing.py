"""
Note management use case: cached listings plus writes that invalidate them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .listing_cache import CacheStats, ListingCache
from .models import NoteSummary, NoteUpdate, Pagination, SortOrder
from .persistence import AccessMethod, PersistenceAdapter, PersistenceResult

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Could not load notes"


@dataclass(frozen=True)
class ListingResult:
    success: bool
    notes: List[NoteSummary] = field(default_factory=list)
    pagination: Optional[Pagination] = None
    from_cache: bool = False
    method: Optional[AccessMethod] = None
    error: Optional[str] = None


class NoteListingService:
    """
    Serves note listings from the cache when possible.

    The cache is handed in by the caller so one instance can be shared for
    the lifetime of the process (and replaced in tests).
    """

    def __init__(self, persistence: PersistenceAdapter, cache: ListingCache, page_size: int = 10):
        self.persistence = persistence
        self.cache = cache
        self.page_size = page_size

    def list_notes(
        self,
        user_id: str,
        page: int = 1,
        sort: SortOrder = SortOrder.NEWEST,
        refresh: bool = False,
    ) -> ListingResult:
        """
        Return one listing page for the user.

        Args:
            refresh: Skip the cache read (used by the retry action after a failure)
        """
        page = max(page, 1)

        if not refresh:
            cached = self.cache.get(user_id, page, sort)
            if cached is not None:
                return ListingResult(
                    success=True,
                    notes=cached.notes,
                    pagination=cached.pagination,
                    from_cache=True,
                )

        result = self.persistence.list_page(user_id, page=page, limit=self.page_size, sort=sort)
        if not result.success:
            logger.error("Listing failed for user %s: %s", user_id, result.error)
            return ListingResult(success=False, error=LOAD_FAILED_MESSAGE)

        note_page = result.data
        self.cache.set(user_id, page, sort, note_page.notes, note_page.pagination)
        return ListingResult(
            success=True,
            notes=note_page.notes,
            pagination=note_page.pagination,
            method=result.method,
        )

    def create_note(self, user_id: str, title: str, content: Optional[str] = None) -> PersistenceResult:
        result = self.persistence.insert(user_id, title, content)
        if result.success:
            self.cache.invalidate_user(user_id)
        return result

    def update_note(self, user_id: str, note_id: str, changes: NoteUpdate) -> PersistenceResult:
        result = self.persistence.update(note_id, changes, user_id=user_id)
        if result.success:
            self.cache.invalidate_note(user_id, note_id)
        return result

    def delete_note(self, user_id: str, note_id: str) -> PersistenceResult:
        result = self.persistence.soft_delete(note_id, user_id=user_id)
        if result.success:
            self.cache.invalidate_note(user_id, note_id)
        return result

    def restore_note(self, user_id: str, note_id: str) -> PersistenceResult:
        result = self.persistence.restore(note_id, user_id=user_id)
        if result.success:
            self.cache.invalidate_note(user_id, note_id)
        return result

    def cache_stats(self) -> CacheStats:
        return self.cache.get_stats()
