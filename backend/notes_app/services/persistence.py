"""
Dual-path persistence adapter for note CRUD.

Each call tries the direct relational connection first and, on any failure,
runs the same logical operation once through the REST fallback client:

    TryPreferred -> Done
                 -> TryFallback -> Done
                                -> Failed

Callers always get a PersistenceResult back; nothing here raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Callable, Optional

from .direct_store import DirectNoteStore
from .models import NotePage, NoteUpdate, Pagination, SortOrder
from .rest_client import NotesRestClient

logger = logging.getLogger(__name__)


class AccessMethod(str, Enum):
    DIRECT = "direct"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class PersistenceResult:
    success: bool
    data: Any = None
    method: Optional[AccessMethod] = None
    error: Optional[str] = None
    # Raw messages from each path, kept for diagnostics only
    direct_error: Optional[str] = None
    fallback_error: Optional[str] = None


class PathUnavailable(Exception):
    """A storage path is not configured for this process."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PersistenceAdapter:
    """
    Single call surface for note CRUD over two storage paths.

    Args:
        direct: Preferred SQLAlchemy store (None counts as a failed attempt)
        fallback: REST client used after the direct path fails
        clock: Source of write timestamps (tests inject a fixed clock)
    """

    def __init__(
        self,
        direct: Optional[DirectNoteStore],
        fallback: Optional[NotesRestClient],
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.direct = direct
        self.fallback = fallback
        self.clock = clock

    def insert(self, user_id: str, title: str, content: Optional[str] = None) -> PersistenceResult:
        now = self.clock()
        return self._execute(
            "insert",
            lambda store: store.insert_note(
                user_id=user_id, title=title, content=content, created_at=now
            ),
            lambda client: client.insert_note(
                {
                    "user_id": user_id,
                    "title": title,
                    "content": content,
                    "created_at": now.isoformat(),
                    "updated_at": now.isoformat(),
                }
            ),
        )

    def list(self, user_id: str, limit: int = 10) -> PersistenceResult:
        return self._execute(
            "select",
            lambda store: store.select_notes(user_id, limit),
            lambda client: client.select_notes(user_id, limit),
        )

    def list_page(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        sort: SortOrder = SortOrder.NEWEST,
    ) -> PersistenceResult:
        """
        Fetch one sorted page of live notes.

        On success `data` is a NotePage with pagination computed from the
        total count reported by whichever path served the call.
        """
        page = max(page, 1)
        offset = (page - 1) * limit

        def to_page(fetched):
            notes, total = fetched
            return NotePage(notes=notes, pagination=Pagination.build(page, limit, total))

        return self._execute(
            "list_page",
            lambda store: to_page(store.list_page(user_id, offset, limit, sort)),
            lambda client: to_page(client.list_page(user_id, offset, limit, sort)),
        )

    def update(
        self,
        note_id: str,
        changes: NoteUpdate,
        user_id: Optional[str] = None,
    ) -> PersistenceResult:
        now = self.clock()
        values = changes.changes()
        return self._execute(
            "update",
            lambda store: store.update_notes(
                note_id, {**values, "updated_at": now}, user_id=user_id
            ),
            lambda client: client.update_notes(
                note_id, {**values, "updated_at": now.isoformat()}, user_id=user_id
            ),
        )

    def soft_delete(self, note_id: str, user_id: Optional[str] = None) -> PersistenceResult:
        now = self.clock()
        return self._execute(
            "soft_delete",
            lambda store: store.update_notes(note_id, {"deleted_at": now}, user_id=user_id),
            lambda client: client.update_notes(
                note_id, {"deleted_at": now.isoformat()}, user_id=user_id
            ),
        )

    def restore(self, note_id: str, user_id: Optional[str] = None) -> PersistenceResult:
        """Undo a soft delete by clearing deleted_at."""
        return self._execute(
            "restore",
            lambda store: store.update_notes(note_id, {"deleted_at": None}, user_id=user_id),
            lambda client: client.update_notes(note_id, {"deleted_at": None}, user_id=user_id),
        )

    def _execute(
        self,
        operation: str,
        direct_call: Callable[[DirectNoteStore], Any],
        fallback_call: Callable[[NotesRestClient], Any],
    ) -> PersistenceResult:
        try:
            if self.direct is None:
                raise PathUnavailable("direct connection is not configured")
            data = direct_call(self.direct)
        except Exception as e:
            direct_error = str(e) or e.__class__.__name__
            logger.warning("Direct %s failed, using REST fallback: %s", operation, direct_error)
        else:
            logger.debug("%s served by direct connection", operation)
            return PersistenceResult(success=True, data=data, method=AccessMethod.DIRECT)

        try:
            if self.fallback is None:
                raise PathUnavailable("REST fallback is not configured")
            data = fallback_call(self.fallback)
        except Exception as e:
            fallback_error = str(e) or e.__class__.__name__
            logger.error("Fallback %s failed: %s", operation, fallback_error)
            return PersistenceResult(
                success=False,
                error=f"{operation} failed: {fallback_error}",
                direct_error=direct_error,
                fallback_error=fallback_error,
            )

        logger.info("%s served by REST fallback", operation)
        return PersistenceResult(
            success=True,
            data=data,
            method=AccessMethod.FALLBACK,
            direct_error=direct_error,
        )
