"""
Tests for the note listing use case (cache in front of the persistence adapter).
"""
from __future__ import annotations

from pathlib import Path

import pytest

from notes_app.services.direct_store import DirectNoteStore
from notes_app.services.listing_cache import ListingCache
from notes_app.services.models import NoteUpdate, SortOrder
from notes_app.services.note_listing import LOAD_FAILED_MESSAGE, NoteListingService
from notes_app.services.persistence import AccessMethod, PersistenceAdapter


class _CountingStore(DirectNoteStore):
    """Direct store that counts page queries and can be switched off."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.page_queries = 0
        self.down = False

    def list_page(self, *args, **kwargs):
        self.page_queries += 1
        if self.down:
            raise ConnectionError("database unreachable")
        return super().list_page(*args, **kwargs)


class _DownFallback:
    def list_page(self, *args, **kwargs):  # noqa: ANN001 - test fake
        raise RuntimeError("REST GET failed: HTTP 503")


@pytest.fixture()
def store(tmp_path: Path):
    return _CountingStore(db_path=tmp_path / "listing_test.db")


@pytest.fixture()
def cache():
    return ListingCache(ttl_seconds=300, max_size=10, cleanup_interval=None)


@pytest.fixture()
def service(store, cache):
    adapter = PersistenceAdapter(direct=store, fallback=_DownFallback())
    return NoteListingService(adapter, cache, page_size=2)


def test_second_listing_is_served_from_cache(service, store):
    service.create_note("u1", "first")

    first = service.list_notes("u1")
    second = service.list_notes("u1")

    assert first.from_cache is False
    assert first.method == AccessMethod.DIRECT
    assert second.from_cache is True
    assert second.notes == first.notes
    assert store.page_queries == 1


def test_pages_and_sorts_are_cached_separately(service, store):
    for title in ("a", "b", "c"):
        service.create_note("u1", title)

    page1 = service.list_notes("u1", page=1, sort=SortOrder.TITLE_ASC)
    page2 = service.list_notes("u1", page=2, sort=SortOrder.TITLE_ASC)
    service.list_notes("u1", page=1, sort=SortOrder.TITLE_DESC)

    assert [n.title for n in page1.notes] == ["a", "b"]
    assert [n.title for n in page2.notes] == ["c"]
    assert page1.pagination.total_pages == 2
    assert store.page_queries == 3


def test_writes_invalidate_cached_listings(service, store):
    created = service.create_note("u1", "draft")
    note_id = created.data[0].id
    service.list_notes("u1")

    service.update_note("u1", note_id, NoteUpdate(title="final"))
    after_update = service.list_notes("u1")
    assert after_update.from_cache is False
    assert after_update.notes[0].title == "final"

    service.delete_note("u1", note_id)
    after_delete = service.list_notes("u1")
    assert after_delete.from_cache is False
    assert after_delete.notes == []


def test_restore_brings_note_back_into_listing(service):
    note_id = service.create_note("u1", "kept").data[0].id
    service.delete_note("u1", note_id)
    assert service.list_notes("u1").notes == []

    restored = service.restore_note("u1", note_id)
    after_restore = service.list_notes("u1")

    assert restored.success is True
    assert restored.data[0].deleted_at is None
    assert after_restore.from_cache is False
    assert [n.id for n in after_restore.notes] == [note_id]


def test_write_for_one_user_keeps_other_users_cached(service, cache):
    service.list_notes("u1")
    service.list_notes("u2")

    service.create_note("u1", "new")

    assert cache.get("u1", 1, SortOrder.NEWEST) is None
    assert cache.get("u2", 1, SortOrder.NEWEST) is not None


def test_failed_listing_is_not_cached(service, store, cache):
    store.down = True

    result = service.list_notes("u1")

    assert result.success is False
    assert result.error == LOAD_FAILED_MESSAGE
    assert cache.size == 0


def test_refresh_bypasses_cached_entry(service, store):
    service.list_notes("u1")
    store.page_queries = 0

    refreshed = service.list_notes("u1", refresh=True)

    assert refreshed.from_cache is False
    assert store.page_queries == 1
    assert service.list_notes("u1").from_cache is True


def test_failed_write_does_not_invalidate(service, store, cache, monkeypatch):
    service.list_notes("u1")

    def _boom(*args, **kwargs):
        raise ConnectionError("down")

    monkeypatch.setattr(store, "insert_note", _boom)
    result = service.create_note("u1", "lost")

    assert result.success is False
    assert cache.get("u1", 1, SortOrder.NEWEST) is not None


def test_cache_stats_reflect_listing_traffic(service):
    service.list_notes("u1")
    service.list_notes("u1")

    stats = service.cache_stats()
    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.hit_rate == 0.5
