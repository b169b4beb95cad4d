"""
REST fallback client for the notes table.

Talks to a PostgREST-style API (as exposed by Supabase) with snake_case
row fields. Used only after the direct connection fails.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from .models import Note, NoteSummary, SortOrder

logger = logging.getLogger(__name__)

_SUMMARY_COLUMNS = "id,title,content,created_at,updated_at"


class RestClientError(Exception):
    """Raised when the REST API is unreachable or answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotesRestClient:
    """
    Thin wrapper over the `/rest/v1/notes` resource.

    Args:
        base_url: Project URL, e.g. https://xyz.supabase.co
        api_key: Service or anon key sent as `apikey` and bearer token
        timeout: Per-request timeout in seconds
        session: Optional preconfigured requests.Session (tests inject fakes)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = f"{base_url.rstrip('/')}/rest/v1/notes"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    def insert_note(self, row: Dict[str, Any]) -> List[Note]:
        response = self._request(
            "POST",
            json=row,
            headers={"Prefer": "return=representation"},
        )
        return [Note.model_validate(item) for item in response.json()]

    def select_notes(self, user_id: str, limit: int) -> List[Note]:
        response = self._request(
            "GET",
            params={
                "select": "*",
                "user_id": f"eq.{user_id}",
                "deleted_at": "is.null",
                "order": "created_at.desc",
                "limit": str(max(limit, 1)),
            },
        )
        return [Note.model_validate(item) for item in response.json()]

    def update_notes(
        self,
        note_id: str,
        row: Dict[str, Any],
        user_id: Optional[str] = None,
    ) -> List[Note]:
        params = {"id": f"eq.{note_id}"}
        if user_id is not None:
            params["user_id"] = f"eq.{user_id}"
        response = self._request(
            "PATCH",
            params=params,
            json=row,
            headers={"Prefer": "return=representation"},
        )
        return [Note.model_validate(item) for item in response.json()]

    def list_page(
        self,
        user_id: str,
        offset: int,
        limit: int,
        sort: SortOrder,
    ) -> Tuple[List[NoteSummary], int]:
        direction = "asc" if sort.ascending else "desc"
        response = self._request(
            "GET",
            params={
                "select": _SUMMARY_COLUMNS,
                "user_id": f"eq.{user_id}",
                "deleted_at": "is.null",
                "order": f"{sort.column}.{direction},id.asc",
                "offset": str(offset),
                "limit": str(limit),
            },
            headers={"Prefer": "count=exact"},
        )
        notes = []
        for item in response.json():
            summary = NoteSummary.model_validate(item)
            summary.content = NoteSummary.preview(summary.content)
            notes.append(summary)
        return notes, _parse_total(response.headers.get("Content-Range"), len(notes))

    def _request(
        self,
        method: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        try:
            response = self.session.request(
                method,
                self.endpoint,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RestClientError(f"REST {method} failed: {e}") from e

        if not response.ok:
            raise RestClientError(
                f"REST {method} failed: {_error_message(response)}",
                status_code=response.status_code,
            )
        return response


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}"


def _parse_total(content_range: Optional[str], fallback: int) -> int:
    """
    Read the exact count from a `Content-Range` header.

    PostgREST answers `0-9/42` (or `*/0` for an empty page).
    """
    if not content_range or "/" not in content_range:
        logger.warning("Missing Content-Range header, using page length as total")
        return fallback
    total = content_range.rsplit("/", 1)[1]
    if not total.isdigit():
        return fallback
    return int(total)
