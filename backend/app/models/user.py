"""
PadPress Backend — User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table.
Who:   Read by the note handlers for owner/last-editor profiles and by the
       GitLab project listing (stored access token and profile id).
       Sign-in itself lives outside this service; rows arrive from the
       login provider's callback.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    # Identifier of the account at the login provider (e.g. GitLab user id)
    profileid: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    # Raw profile document returned by the login provider, JSON encoded
    profile: Mapped[str | None] = mapped_column(Text, nullable=True)

    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    access_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, profileid='{self.profileid}')>"

    @staticmethod
    def get_profile(user: Optional["User"]) -> Optional[Dict[str, Any]]:
        """
        Display profile for templates: name, photo URL and biography.

        The provider document is tolerated in any shape; unknown or broken
        JSON falls back to the e-mail local part as the display name.
        """
        if user is None:
            return None

        data: Dict[str, Any] = {}
        if user.profile:
            try:
                loaded = json.loads(user.profile)
            except ValueError:
                loaded = None
            if isinstance(loaded, dict):
                data = loaded

        name = data.get("displayName") or data.get("username") or data.get("name")
        if not name and user.email:
            name = user.email.split("@", 1)[0]
        if not name:
            return None

        photo = None
        photos = data.get("photos")
        if isinstance(photos, list) and photos:
            first = photos[0]
            photo = first.get("value") if isinstance(first, dict) else None
        photo = photo or data.get("avatar_url")

        return {
            "name": name,
            "photo": photo,
            "biography": data.get("bio"),
        }
