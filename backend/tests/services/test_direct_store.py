"""
Tests for the SQLAlchemy direct store against a temporary SQLite database.
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from notes_app.services.direct_store import DirectNoteStore
from notes_app.services.models import NoteSummary, SortOrder

BASE_TIME = datetime(2026, 1, 1, 9, 0, 0, tzinfo=UTC)


@pytest.fixture()
def store(tmp_path: Path):
    return DirectNoteStore(db_path=tmp_path / "direct_test.db")


def _seed(store: DirectNoteStore, user_id: str, titles: list[str]) -> list[str]:
    ids = []
    for i, title in enumerate(titles):
        rows = store.insert_note(
            user_id=user_id,
            title=title,
            content=f"content of {title}",
            created_at=BASE_TIME + timedelta(minutes=i),
        )
        ids.append(rows[0].id)
    return ids


def test_insert_returns_created_row(store):
    rows = store.insert_note(user_id="u1", title="Hello", content=None, created_at=BASE_TIME)

    assert len(rows) == 1
    assert rows[0].id
    assert rows[0].user_id == "u1"
    assert rows[0].title == "Hello"
    assert rows[0].deleted_at is None


def test_select_is_user_scoped_and_limited(store):
    _seed(store, "u1", ["a", "b", "c"])
    _seed(store, "u2", ["x"])

    rows = store.select_notes("u1", limit=2)

    assert [r.title for r in rows] == ["c", "b"]
    assert all(r.user_id == "u1" for r in rows)


def test_update_sets_values_and_scopes_by_owner(store):
    (note_id,) = _seed(store, "u1", ["old"])
    stamp = BASE_TIME + timedelta(days=1)

    assert store.update_notes(note_id, {"title": "new", "updated_at": stamp}, user_id="u2") == []

    rows = store.update_notes(note_id, {"title": "new", "updated_at": stamp}, user_id="u1")
    assert rows[0].title == "new"
    assert rows[0].content == "content of old"
    assert rows[0].updated_at.replace(tzinfo=None) == stamp.replace(tzinfo=None)


def test_soft_deleted_notes_are_hidden_from_listings(store):
    ids = _seed(store, "u1", ["a", "b"])

    store.update_notes(ids[0], {"deleted_at": BASE_TIME}, user_id="u1")

    assert [r.title for r in store.select_notes("u1", limit=10)] == ["b"]
    notes, total = store.list_page("u1", offset=0, limit=10, sort=SortOrder.NEWEST)
    assert [n.title for n in notes] == ["b"]
    assert total == 1


@pytest.mark.parametrize(
    "sort, expected",
    [
        (SortOrder.NEWEST, ["gamma", "alpha", "beta"]),
        (SortOrder.OLDEST, ["beta", "alpha", "gamma"]),
        (SortOrder.TITLE_ASC, ["alpha", "beta", "gamma"]),
        (SortOrder.TITLE_DESC, ["gamma", "beta", "alpha"]),
    ],
)
def test_list_page_sort_orders(store, sort, expected):
    _seed(store, "u1", ["beta", "alpha", "gamma"])

    notes, total = store.list_page("u1", offset=0, limit=10, sort=sort)

    assert [n.title for n in notes] == expected
    assert total == 3


def test_list_page_offsets_and_truncates_content(store):
    store.insert_note(
        user_id="u1", title="long", content="x" * 500, created_at=BASE_TIME - timedelta(minutes=1)
    )
    _seed(store, "u1", ["a", "b"])

    first, total = store.list_page("u1", offset=0, limit=2, sort=SortOrder.OLDEST)
    second, _ = store.list_page("u1", offset=2, limit=2, sort=SortOrder.OLDEST)

    assert total == 3
    assert len(first[0].content) == 200
    assert [n.title for n in first + second] == ["long", "a", "b"]


def test_timestamps_read_back_as_utc_aware(store):
    (note_id,) = _seed(store, "u1", ["a"])

    (selected,) = store.select_notes("u1", limit=1)
    notes, _ = store.list_page("u1", offset=0, limit=10, sort=SortOrder.NEWEST)

    assert selected.id == note_id
    assert selected.created_at == BASE_TIME
    assert selected.created_at.tzinfo == UTC
    assert notes[0].created_at.tzinfo == UTC
    assert notes[0].updated_at == BASE_TIME


def test_direct_and_rest_rows_serialize_identically(store):
    _seed(store, "u1", ["a"])
    notes, _ = store.list_page("u1", offset=0, limit=10, sort=SortOrder.NEWEST)
    direct_row = notes[0]

    rest_row = NoteSummary.model_validate(
        {
            "id": direct_row.id,
            "title": "a",
            "content": "content of a",
            "created_at": "2026-01-01T09:00:00+00:00",
            "updated_at": "2026-01-01T09:00:00+00:00",
        }
    )

    assert direct_row.model_dump(mode="json") == rest_row.model_dump(mode="json")
