"""
PadPress Backend — History Recorder
====================================

What:  Records that a signed-in user created or viewed a note.
How:   Upserts one row per (user, note token) with the document snapshot
       and a timestamp. Scheduled through FastAPI BackgroundTasks, so it
       runs after the response has been decided, in its own session.
Who:   Called by the note-creation flow and the slide view.

Failure policy:
    A failed history write is logged and dropped. It never changes the
    status code or body the caller already received.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import BackgroundTasks, Request
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import async_session_factory
from app.models.history import HistoryEntry
from app.models.note import Note

logger = logging.getLogger(__name__)


class HistoryService:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session_factory):
        self.session_factory = session_factory

    async def update_history(
        self,
        user_id: uuid.UUID,
        note: Note,
        document: str,
        time: Optional[datetime] = None,
    ) -> None:
        """
        Upsert the history entry for (user_id, note.canonical_token).

        Args:
            user_id: The signed-in caller
            note: The note that was created or viewed
            document: Snapshot of the note content to store
            time: Visit time; defaults to now (UTC)
        """
        note_token = note.canonical_token
        when = time or datetime.now(timezone.utc)

        statement = insert(HistoryEntry).values(
            id=uuid.uuid4(),
            user_id=user_id,
            note_id=note_token,
            text=document,
            time=when,
        )
        statement = statement.on_conflict_do_update(
            constraint="uq_histories_user_note",
            set_={"text": statement.excluded.text, "time": statement.excluded.time},
        )

        try:
            async with self.session_factory() as session:
                await session.execute(statement)
                await session.commit()
            logger.info("History updated for user %s, note %s", user_id, note_token)
        except Exception as e:
            logger.error(
                "History update failed for user %s, note %s: %s",
                user_id,
                note_token,
                str(e),
            )

    def schedule(
        self,
        request: Request,
        background_tasks: BackgroundTasks,
        user_id: uuid.UUID,
        note: Note,
        document: str,
    ) -> bool:
        """
        Queue `update_history` to run after the response.

        At most one write per (user, note) is queued per request; repeated
        calls return False and queue nothing.
        """
        queued = getattr(request.state, "history_queued", None)
        if queued is None:
            queued = set()
            request.state.history_queued = queued

        key = (user_id, note.canonical_token)
        if key in queued:
            return False
        queued.add(key)
        background_tasks.add_task(self.update_history, user_id, note, document)
        return True


history_service = HistoryService()
