"""
REST API routes for note management.

Organized into logical groups:
- Notes: cached listing and CRUD operations
- Cache: listing cache statistics
- Utility: health check

All routes except health require authentication and are user-scoped.
"""

from flask import Blueprint, request, jsonify, g
from pydantic import ValidationError

from .auth import require_auth
from .services.container import get_services
from .services.models import NoteUpdate, SortOrder
from .services.persistence import PersistenceResult

bp = Blueprint("api", __name__)


def _json_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _method(result: PersistenceResult):
    return result.method.value if result.method else None


# ============================================================================
# NOTE ENDPOINTS
# ============================================================================


@bp.get("/notes")
@require_auth
def list_notes():
    """
    List one page of notes (user-scoped, cached).

    Query params:
        - page: Page number, 1-based (default: 1)
        - sort: newest | oldest | title_asc | title_desc (default: newest)
        - refresh: "1" to bypass the cache (retry after a failure)

    Returns:
        JSON: {"notes": [...], "pagination": {...}, "from_cache": bool, "method": str | null}
    """
    user_id = g.user_id
    svc = get_services()

    try:
        page = int(request.args.get("page", 1))
    except ValueError:
        return _json_error("page must be an integer")

    sort = SortOrder.parse(request.args.get("sort"))
    refresh = request.args.get("refresh") in ("1", "true")

    result = svc.notes.list_notes(user_id, page=page, sort=sort, refresh=refresh)

    if not result.success:
        return jsonify({"error": result.error, "retry": True}), 503

    return jsonify(
        {
            "notes": [note.model_dump(mode="json") for note in result.notes],
            "pagination": result.pagination.model_dump(),
            "from_cache": result.from_cache,
            "method": result.method.value if result.method else None,
        }
    )


@bp.post("/notes")
@require_auth
def create_note():
    """
    Create a note (user-scoped).

    Body:
        JSON: {"title": str, "content": str (optional)}

    Returns:
        JSON: {"note": {...}, "method": str}
    """
    user_id = g.user_id
    svc = get_services()

    data = request.get_json(silent=True)
    if not data:
        return _json_error("No data provided")

    title = (data.get("title") or "").strip()
    if not title:
        return _json_error("title is required")

    result = svc.notes.create_note(user_id, title, data.get("content"))

    if not result.success:
        return _json_error(result.error, 500)

    note = result.data[0] if result.data else None
    return jsonify(
        {"note": note.model_dump(mode="json") if note else None, "method": _method(result)}
    ), 201


@bp.put("/notes/<note_id>")
@require_auth
def update_note(note_id: str):
    """
    Update title and/or content of a note (user-scoped).

    Body:
        JSON: {"title": str (optional), "content": str (optional)}

    Returns:
        JSON: Updated note or 404 error
    """
    user_id = g.user_id
    svc = get_services()

    data = request.get_json(silent=True)
    if not data:
        return _json_error("No data provided")

    try:
        changes = NoteUpdate(title=data.get("title"), content=data.get("content"))
    except ValidationError as e:
        return _json_error(str(e))

    if not changes.changes():
        return _json_error("Nothing to update")

    result = svc.notes.update_note(user_id, note_id, changes)

    if not result.success:
        return _json_error(result.error, 500)

    if not result.data:
        return _json_error("Note not found", 404)

    return jsonify({"note": result.data[0].model_dump(mode="json"), "method": _method(result)})


@bp.delete("/notes/<note_id>")
@require_auth
def delete_note(note_id: str):
    """
    Soft-delete a note (user-scoped).

    Returns:
        JSON: {"success": bool, "message": str, "method": str}
    """
    user_id = g.user_id
    svc = get_services()

    result = svc.notes.delete_note(user_id, note_id)

    if not result.success:
        return _json_error(result.error, 500)

    if not result.data:
        return _json_error("Note not found", 404)

    return jsonify(
        {
            "success": True,
            "message": f"Note {note_id} deleted successfully",
            "method": _method(result),
        }
    )


@bp.post("/notes/<note_id>/restore")
@require_auth
def restore_note(note_id: str):
    """
    Restore a soft-deleted note (user-scoped).

    Returns:
        JSON: {"note": {...}, "method": str} or 404 error
    """
    user_id = g.user_id
    svc = get_services()

    result = svc.notes.restore_note(user_id, note_id)

    if not result.success:
        return _json_error(result.error, 500)

    if not result.data:
        return _json_error("Note not found", 404)

    return jsonify({"note": result.data[0].model_dump(mode="json"), "method": _method(result)})


# ============================================================================
# CACHE ENDPOINTS
# ============================================================================


@bp.get("/cache-stats")
@require_auth
def cache_stats():
    """
    Listing cache statistics for operational visibility.

    Returns:
        JSON: {"hits", "misses", "size", "last_cleanup", "hit_rate"}
    """
    svc = get_services()
    return jsonify(svc.notes.cache_stats().model_dump(mode="json"))


# ============================================================================
# UTILITY ENDPOINTS
# ============================================================================


@bp.get("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok"})
