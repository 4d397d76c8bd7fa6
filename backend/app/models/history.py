"""
PadPress Backend — History Entry SQLAlchemy Model
==================================================

What:  Per-(user, note) record of the last viewed/edited snapshot.
How:   `note_id` holds the note's external token (alias or shortid), not
       the primary key, so a history list can link straight to the note.
       The unique constraint on (user_id, note_id) makes every write an
       upsert that refreshes the existing row.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class HistoryEntry(Base):
    __tablename__ = "histories"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    note_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # Document snapshot at the time of the visit/edit
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    time: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "note_id", name="uq_histories_user_note"),
    )

    def __repr__(self) -> str:
        return f"<HistoryEntry(user_id={self.user_id}, note_id='{self.note_id}', time='{self.time}')>"
