"""
Tests for building the services container from configuration.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from notes_app.config import Config
from notes_app.services.container import create_services
from notes_app.services.direct_store import DirectNoteStore
from notes_app.services.persistence import AccessMethod
from notes_app.services.rest_client import NotesRestClient


@pytest.fixture()
def rest_only_production(monkeypatch):
    monkeypatch.setenv("FLASK_ENV", "production")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(Config, "FLASK_ENV", "production")
    monkeypatch.setattr(Config, "DATABASE_URL", None)
    monkeypatch.setattr(Config, "SUPABASE_URL", "https://project.example.co")
    monkeypatch.setattr(Config, "SUPABASE_KEY", "service-key")
    monkeypatch.setattr(Config, "LISTING_CACHE_CLEANUP_SECONDS", 0)


def test_rest_only_production_config_starts_without_direct_store(rest_only_production):
    Config.validate()

    services = create_services()

    assert services.persistence.direct is None
    assert isinstance(services.persistence.fallback, NotesRestClient)
    services.close()


def test_rest_only_production_serves_listings_from_fallback(rest_only_production, monkeypatch):
    services = create_services()
    monkeypatch.setattr(
        services.persistence.fallback,
        "list_page",
        lambda user_id, offset, limit, sort: ([], 0),
    )

    result = services.notes.list_notes("u1")

    assert result.success is True
    assert result.method == AccessMethod.FALLBACK
    services.close()


def test_database_url_builds_direct_store(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(Config, "SUPABASE_URL", None)
    monkeypatch.setattr(Config, "LISTING_CACHE_CLEANUP_SECONDS", 0)

    services = create_services(database_url=f"sqlite:///{tmp_path / 'container.db'}")

    assert isinstance(services.persistence.direct, DirectNoteStore)
    assert services.persistence.fallback is None
    services.close()
