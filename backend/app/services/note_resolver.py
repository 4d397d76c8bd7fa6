"""
PadPress Backend — Note Resolver
=================================

What:  Turns the token in a URL into a note the caller may see.
How:   decode token → load note → (missing: free URL or 404)
                                 → (found: permission check → note or 403)

Resolution Flow:
    token ──▶ parse_note_id ──▶ find_note_by_key ──┬─ found ──▶ can view? ──┬─ yes ─▶ Resolution(note)
                 │                                 │                        └─ no ──▶ ForbiddenError
                 │                                 └─ missing ─▶ free URL? ─┬─ yes ─▶ Resolution(create_alias)
                 │                                                          └─ no ──▶ NotFoundError
                 └─ NoteIdDecodeError ──▶ InternalError (BadRequestError if configured)

The free-URL flag, forbidden token set and decode-error policy are fixed in
a ResolverConfig at construction and read-only afterwards.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Caller
from app.config import Settings
from app.exceptions import (
    BadRequestError,
    ForbiddenError,
    InternalError,
    NoteIdDecodeError,
    NotFoundError,
)
from app.models.note import Note
from app.services.note_codec import parse_note_id
from app.services.note_store import NoteStore, note_store
from app.services.permission import check_view_permission

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolverConfig:
    allow_free_url: bool = False
    forbidden_note_ids: FrozenSet[str] = frozenset()
    decode_error_as_bad_request: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResolverConfig":
        return cls(
            allow_free_url=settings.allow_free_url,
            forbidden_note_ids=settings.forbidden_note_ids_set,
            decode_error_as_bad_request=settings.decode_error_as_bad_request,
        )


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of a successful resolution: exactly one field is set.

    note:          an existing note the caller may view
    create_alias:  no note exists; create one aliased to this token
    """

    note: Optional[Note] = None
    create_alias: Optional[str] = None


class NoteResolver:

    def __init__(self, config: ResolverConfig, store: NoteStore = note_store):
        self.config = config
        self.store = store

    def allows_free_url(self, token: str) -> bool:
        return (
            self.config.allow_free_url
            and bool(token)
            and token not in self.config.forbidden_note_ids
        )

    async def resolve(
        self,
        db: AsyncSession,
        caller: Caller,
        token: str,
        include_users: bool = False,
    ) -> Resolution:
        """
        Resolve a URL token for `caller`.

        Args:
            db: Async database session
            caller: Current caller, checked against the note's permission
            token: Raw note token from the path
            include_users: Eager-load owner and last editor

        Raises:
            InternalError / BadRequestError: token could not be decoded
            NotFoundError: no such note and free URL does not apply
            ForbiddenError: caller may not view the note
            DatabaseError: store failure
        """
        try:
            key = await parse_note_id(db, token)
        except NoteIdDecodeError as e:
            logger.error("Could not decode note token %r: %s | Context: %s", token, e.message, e.context)
            if self.config.decode_error_as_bad_request:
                raise BadRequestError(message="Malformed note identifier", context=e.context)
            raise InternalError(message="Note identifier could not be resolved", context=e.context)

        note = None
        if key is not None:
            note = await self.store.find_note_by_key(db, key, include_users=include_users)

        if note is None:
            if self.allows_free_url(token):
                logger.info("Free URL: creating note aliased to %r", token)
                return Resolution(create_alias=token)
            logger.info("Note not found: %r", token)
            raise NotFoundError(resource="note", resource_id=token)

        if not check_view_permission(caller, note):
            logger.info(
                "View of note %s denied (permission=%s, caller=%s)",
                note.id,
                note.permission,
                caller.user_id,
            )
            raise ForbiddenError(context={"note_id": str(note.id), "permission": note.permission})

        return Resolution(note=note)
