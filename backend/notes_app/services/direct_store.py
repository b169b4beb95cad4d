"""
SQLAlchemy-backed direct access to the notes table.

This is the preferred storage path. Every method lets SQLAlchemy errors
propagate so the persistence adapter can decide whether to fall back.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import asc, desc, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..database import (
    Base,
    Note as NoteORM,
    create_engine_for_url,
    get_engine,
    get_session_factory,
    make_session_factory,
)
from .models import (
    CONTENT_PREVIEW_CHARS,
    Note as NoteDTO,
    NoteSummary,
    SortOrder,
)


def _note_to_dto(note: NoteORM) -> NoteDTO:
    return NoteDTO(
        id=note.id,
        user_id=note.user_id,
        title=note.title,
        content=note.content,
        created_at=note.created_at,
        updated_at=note.updated_at,
        deleted_at=note.deleted_at,
    )


class DirectNoteStore:
    """
    Direct relational connection to the notes table.

    Field names follow the ORM columns; translation from the logical
    operation happens in the persistence adapter.
    """

    def __init__(self, db_path: Optional[Path] = None, database_url: Optional[str] = None):
        self.engine, self.session_factory = self._configure_engine(db_path, database_url)
        self.dialect = self.engine.dialect.name

        if self.dialect == "sqlite":
            Base.metadata.create_all(bind=self.engine)

    def insert_note(
        self,
        user_id: str,
        title: str,
        content: Optional[str],
        created_at: datetime,
    ) -> List[NoteDTO]:
        db_note = NoteORM(
            id=str(uuid4()),
            user_id=user_id,
            title=title,
            content=content,
            created_at=created_at,
            updated_at=created_at,
        )

        with self._session_scope() as session:
            session.add(db_note)
            session.flush()
            return [_note_to_dto(db_note)]

    def select_notes(self, user_id: str, limit: int) -> List[NoteDTO]:
        with self._session_scope() as session:
            rows = (
                session.query(NoteORM)
                .filter(NoteORM.user_id == user_id, NoteORM.deleted_at.is_(None))
                .order_by(desc(NoteORM.created_at))
                .limit(max(limit, 1))
                .all()
            )
            return [_note_to_dto(row) for row in rows]

    def update_notes(
        self,
        note_id: str,
        values: Dict[str, Any],
        user_id: Optional[str] = None,
    ) -> List[NoteDTO]:
        """
        Apply column values to a note and return the updated rows.

        An empty list means nothing matched (unknown id or wrong owner).
        """
        with self._session_scope() as session:
            query = session.query(NoteORM).filter(NoteORM.id == note_id)
            if user_id is not None:
                query = query.filter(NoteORM.user_id == user_id)
            rows = query.all()
            for row in rows:
                for column, value in values.items():
                    setattr(row, column, value)
            session.flush()
            return [_note_to_dto(row) for row in rows]

    def list_page(
        self,
        user_id: str,
        offset: int,
        limit: int,
        sort: SortOrder,
    ) -> Tuple[List[NoteSummary], int]:
        """Return one page of live notes plus the total live-note count."""
        column = NoteORM.title if sort.column == "title" else NoteORM.created_at
        order = asc(column) if sort.ascending else desc(column)
        preview = func.substr(NoteORM.content, 1, CONTENT_PREVIEW_CHARS)

        with self._session_scope() as session:
            live = (NoteORM.user_id == user_id, NoteORM.deleted_at.is_(None))
            rows = (
                session.query(
                    NoteORM.id,
                    NoteORM.title,
                    preview.label("content"),
                    NoteORM.created_at,
                    NoteORM.updated_at,
                )
                .filter(*live)
                .order_by(order, NoteORM.id)
                .offset(offset)
                .limit(limit)
                .all()
            )
            total = session.query(func.count(NoteORM.id)).filter(*live).scalar() or 0

        notes = [
            NoteSummary(
                id=row.id,
                title=row.title,
                content=row.content,
                created_at=row.created_at,
                updated_at=row.updated_at,
            )
            for row in rows
        ]
        return notes, int(total)

    def _configure_engine(
        self,
        db_path: Optional[Path],
        database_url: Optional[str],
    ) -> tuple[Engine, sessionmaker]:
        if database_url:
            engine = create_engine_for_url(database_url)
            return engine, make_session_factory(engine)

        if db_path:
            resolved = Path(db_path).resolve()
            engine = create_engine_for_url(f"sqlite:///{resolved}")
            return engine, make_session_factory(engine)

        return get_engine(), get_session_factory()

    @contextmanager
    def _session_scope(self) -> Generator[Session, None, None]:
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
