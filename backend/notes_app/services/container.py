"""
Dependency injection container for backend services.

We store a single Services instance on the Flask app (app.extensions["services"]).
Routes can then fetch dependencies via get_services() which makes route tests able
to inject fakes without importing/initializing global singletons.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from flask import current_app

from ..config import Config
from .direct_store import DirectNoteStore
from .listing_cache import ListingCache
from .note_listing import NoteListingService
from .persistence import PersistenceAdapter
from .rest_client import NotesRestClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Services:
    persistence: PersistenceAdapter
    listing_cache: ListingCache
    notes: NoteListingService

    def close(self) -> None:
        self.listing_cache.close()


def create_services(*, database_url: Optional[str] = None) -> Services:
    """
    Build the production Services container.

    The listing cache is created here, once per process, and shared by every request.

    Args:
        database_url: Optional override for database URL (useful for tests).
    """
    url = database_url or Config.DATABASE_URL
    if url:
        direct = DirectNoteStore(database_url=url)
    elif Config.FLASK_ENV == "production":
        # REST-only deployment; every call goes straight to the fallback.
        logger.warning("DATABASE_URL is not set, direct connection disabled")
        direct = None
    else:
        direct = DirectNoteStore()

    fallback = None
    if Config.rest_fallback_enabled():
        fallback = NotesRestClient(
            Config.SUPABASE_URL,
            Config.SUPABASE_KEY,
            timeout=Config.REST_TIMEOUT_SECONDS,
        )

    persistence = PersistenceAdapter(direct=direct, fallback=fallback)
    cache = ListingCache(
        ttl_seconds=Config.LISTING_CACHE_TTL_SECONDS,
        max_size=Config.LISTING_CACHE_MAX_SIZE,
        cleanup_interval=Config.LISTING_CACHE_CLEANUP_SECONDS,
    )
    return Services(
        persistence=persistence,
        listing_cache=cache,
        notes=NoteListingService(persistence, cache, page_size=Config.NOTES_PAGE_SIZE),
    )


def get_services() -> Services:
    """
    Fetch the Services container from the current Flask app.

    Raises:
        RuntimeError if services have not been attached to the app.
    """
    services = current_app.extensions.get("services")
    if services is None:
        raise RuntimeError('Services not configured. Expected app.extensions["services"].')
    return services
