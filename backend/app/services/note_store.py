"""
PadPress Backend — Note Store
==============================

What:  The read-side queries the note handlers need: note by key (with
       optional owner/last-editor eager loading), view counter increment,
       and user by id.
How:   Thin async SQLAlchemy queries. A missing row is returned as None;
       any query failure is logged and raised as DatabaseError so the
       error handler answers 500 without exposing SQL details.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import DatabaseError
from app.models.note import Note
from app.models.user import User

logger = logging.getLogger(__name__)


class NoteStore:
    """Stateless query helper; the session is passed in per call."""

    async def find_note_by_key(
        self,
        db: AsyncSession,
        key: uuid.UUID,
        include_users: bool = False,
    ) -> Optional[Note]:
        """
        Fetch a note by primary key.

        Args:
            db: Async database session
            key: Note UUID as returned by the identifier codec
            include_users: Also load `owner` and `lastchange_user`

        Raises:
            DatabaseError: Query execution failed (→ 500)
        """
        query = select(Note).where(Note.id == key)
        if include_users:
            query = query.options(
                selectinload(Note.owner),
                selectinload(Note.lastchange_user),
            )
        try:
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching note %s: %s", key, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": str(key), "error_type": type(e).__name__},
            )

    async def increment_view_count(self, db: AsyncSession, note: Note) -> Optional[Note]:
        """
        Atomically add one to `viewcount` and return the refreshed note.

        Returns None when the note disappeared between resolution and
        increment.
        """
        try:
            result = await db.execute(
                update(Note)
                .where(Note.id == note.id)
                .values(viewcount=Note.viewcount + 1)
                .returning(Note.viewcount)
            )
            viewcount = result.scalar_one_or_none()
            if viewcount is None:
                return None
            note.viewcount = viewcount
            return note
        except Exception as e:
            logger.error("Database error incrementing view count of %s: %s", note.id, str(e))
            raise DatabaseError(
                message="Could not update the note. Please try again.",
                context={"note_id": str(note.id), "error_type": type(e).__name__},
            )

    async def find_user_by_id(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.id == user_id))
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the user. Please try again.",
                context={"user_id": str(user_id), "error_type": type(e).__name__},
            )


note_store = NoteStore()
