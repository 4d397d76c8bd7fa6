"""
PadPress Backend — Note SQLAlchemy Model
=========================================

What:  ORM model representing the `notes` table in PostgreSQL.
Who:   Queried by the note store and the identifier codec; written by the
       creation service.

Identifiers:
    - id:       UUID primary key. Exposed externally only in its encoded
                22-character form (see services/note_codec.py).
    - shortid:  Random 10-character token generated at insert time.
    - alias:    Optional human-chosen name (unique). When present it is the
                canonical external token and takes precedence over shortid
                in every URL this service builds.

Permission:
    One of freely, editable, limited, locked, protected, private.
    Only private, limited and protected restrict *viewing*; the others only
    matter to the editing layer.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.user import User


def _new_shortid() -> str:
    # Imported lazily: the codec module imports this model
    from app.services.note_codec import generate_shortid
    return generate_shortid()


class Note(Base):
    """
    A collaboratively edited markdown note.

    Query Patterns:
        - Resolve by id:      WHERE id = :uuid (primary key)
        - Resolve by alias:   WHERE alias = :token (unique index)
        - Resolve by shortid: WHERE shortid = :token (unique index)
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    shortid: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        unique=True,
        default=_new_shortid,
    )

    alias: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)

    # NULL owner: the note was created anonymously
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    lastchange_user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    permission: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="editable",
        server_default=text("'editable'"),
    )

    # Title as stored by the editor; decode with note_meta.decode_title
    title: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default=text("''"))

    content: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default=text("''"))

    viewcount: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    lastchange_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
    )

    owner: Mapped[Optional[User]] = relationship(User, foreign_keys=[owner_id])
    lastchange_user: Mapped[Optional[User]] = relationship(User, foreign_keys=[lastchange_user_id])

    __table_args__ = (
        Index("idx_notes_owner_id", owner_id),
    )

    @property
    def canonical_token(self) -> str:
        """External token used in URLs: alias if set, shortid otherwise."""
        return self.alias if self.alias else self.shortid

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, shortid='{self.shortid}', alias={self.alias!r}, "
            f"permission='{self.permission}')>"
        )
