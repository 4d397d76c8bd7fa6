"""
PadPress Backend — Note Creation Service
=========================================

What:  Creates notes: from POST bodies, from GET /new, and implicitly when
       free-URL mode resolves an unused token.
How:   Validate body length → decide owner → pre-check the prospective
       owner can open the note → write note + first revision.

Orchestration Flow:
    ┌───────────┐    ┌─────────────┐    ┌──────────────┐    ┌───────────┐
    │ Body size │───▶│ Owner /     │───▶│ View pre-    │───▶│ Note +    │
    │ (413)     │    │ anonymous   │    │ check (403)  │    │ Revision  │
    └───────────┘    │ (403)       │    └──────────────┘    │ (500)     │
                     └─────────────┘                        └───────────┘

    Nothing is written to the store until the first three checks pass.

Configuration is passed in at construction (see `from_settings`); the
service never reads global settings while handling a request.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Caller
from app.config import Settings
from app.exceptions import ForbiddenError, NoteCreateError, PayloadTooLargeError
from app.models.note import Note
from app.models.revision import Revision
from app.services.note_codec import generate_shortid
from app.services.note_meta import parse_note_title
from app.services.permission import check_view_permission_as

logger = logging.getLogger(__name__)


class NoteService:
    """
    Business logic for note creation.

    Responsibilities:
        - prepare_body(): length limit and line-ending normalisation
        - new_note(): full creation workflow for a caller
        - create_note_with_revision(): the store write itself
    """

    def __init__(
        self,
        document_max_length: int,
        allow_anonymous: bool,
        default_permission: str = "editable",
        anonymous_default_permission: str = "freely",
    ):
        self.document_max_length = document_max_length
        self.allow_anonymous = allow_anonymous
        self.default_permission = default_permission
        self.anonymous_default_permission = anonymous_default_permission

    @classmethod
    def from_settings(cls, settings: Settings) -> "NoteService":
        return cls(
            document_max_length=settings.document_max_length,
            allow_anonymous=settings.allow_anonymous,
            default_permission=settings.default_permission,
            anonymous_default_permission=settings.anonymous_default_permission,
        )

    def prepare_body(self, body: Optional[str]) -> str:
        """
        Enforce the length limit and drop carriage returns.

        Raises:
            PayloadTooLargeError: body longer than document_max_length
        """
        if not body:
            return ""
        if len(body) > self.document_max_length:
            raise PayloadTooLargeError(
                max_length=self.document_max_length,
                actual_length=len(body),
            )
        return body.replace("\r", "")

    async def new_note(
        self,
        db: AsyncSession,
        caller: Caller,
        body: Optional[str],
        alias: Optional[str] = None,
    ) -> Note:
        """
        Create a note on behalf of `caller`.

        Args:
            db: Async database session
            caller: Current caller; becomes the owner when signed in
            body: Raw note content (may be empty)
            alias: Alias for the new note (free-URL creation)

        Raises:
            PayloadTooLargeError: body too long (no store write attempted)
            ForbiddenError: anonymous creation disabled, or the new note
                would be invisible to its creator
            NoteCreateError: the store write failed
        """
        content = self.prepare_body(body)

        owner_id: Optional[uuid.UUID] = None
        if caller.is_authenticated:
            owner_id = caller.user_id
        elif not self.allow_anonymous:
            raise ForbiddenError(
                message="Anonymous note creation is disabled",
                context={"alias": alias},
            )

        return await self.create_note_with_revision(
            db=db,
            owner_id=owner_id,
            alias=alias,
            content=content,
        )

    async def create_note_with_revision(
        self,
        db: AsyncSession,
        owner_id: Optional[uuid.UUID],
        alias: Optional[str],
        content: str,
    ) -> Note:
        """
        Write a note and its first revision in the current transaction.

        Raises:
            ForbiddenError: the prospective owner could not view the note
            NoteCreateError: flush failed (includes duplicate alias races)
        """
        permission = self.default_permission if owner_id else self.anonymous_default_permission
        note = Note(
            id=uuid.uuid4(),
            shortid=generate_shortid(),
            alias=alias or None,
            owner_id=owner_id,
            lastchange_user_id=owner_id,
            permission=permission,
            title=parse_note_title(content),
            content=content,
            viewcount=0,
        )

        # The creator stands in as viewer: a note they cannot open is refused.
        if not check_view_permission_as(note, owner_id is not None, owner_id):
            raise ForbiddenError(
                message="The new note would not be visible to its creator",
                context={"permission": permission},
            )

        try:
            db.add(note)
            db.add(Revision(id=uuid.uuid4(), note_id=note.id, content=content))
            await db.flush()
        except Exception as e:
            logger.error("Note creation failed (alias=%r): %s", alias, str(e))
            raise NoteCreateError(
                context={"alias": alias, "error_type": type(e).__name__},
            )

        logger.info("Note created: %s (alias=%r, owner=%s)", note.id, alias, owner_id)
        return note
