"""
PadPress Backend — Note Identifier Codec
=========================================

What:  Translates between the external token forms of a note and its
       primary key.
How:   Four token forms are accepted, tried in this order:

           1. alias            e.g. /meeting-notes
           2. encoded id       22 url-safe base64 characters of the UUID bytes
           3. shortid          10-character random token
           4. raw UUID string  e.g. /2f1c8c9e-...

       The first form that matches an existing row wins. When nothing
       matches, `parse_note_id` returns None and the resolver decides
       between "not found" and free-URL creation.

Failure mode:
    A store failure while probing the forms raises NoteIdDecodeError; the
    resolver reports it as an internal error.
"""

import base64
import binascii
import logging
import secrets
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NoteIdDecodeError
from app.models.note import Note

logger = logging.getLogger(__name__)

ENCODED_ID_LENGTH = 22
SHORTID_LENGTH = 10

_SHORTID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_-"


def encode_note_id(note_id: uuid.UUID) -> str:
    """UUID → 22-character url-safe token (base64 without padding)."""
    return base64.urlsafe_b64encode(note_id.bytes).decode("ascii").rstrip("=")


def decode_note_id(token: str) -> uuid.UUID:
    """
    22-character url-safe token → UUID.

    Raises:
        NoteIdDecodeError: token has the wrong length or is not base64.
    """
    if len(token) != ENCODED_ID_LENGTH:
        raise NoteIdDecodeError(token, message="Encoded note id has the wrong length")
    try:
        raw = base64.urlsafe_b64decode(token + "==")
        return uuid.UUID(bytes=raw)
    except (binascii.Error, ValueError) as e:
        raise NoteIdDecodeError(token, context={"error": str(e)}) from e


def generate_shortid() -> str:
    return "".join(secrets.choice(_SHORTID_ALPHABET) for _ in range(SHORTID_LENGTH))


def _as_uuid(token: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(token)
    except ValueError:
        return None


async def parse_note_id(db: AsyncSession, token: str) -> Optional[uuid.UUID]:
    """
    Resolve any external token form to a note primary key.

    Args:
        db: Async database session
        token: Raw path segment from the URL

    Returns:
        The note's UUID, or None if no note carries this token.

    Raises:
        NoteIdDecodeError: the lookup itself failed.
    """
    if not token:
        return None

    try:
        # ── 1. alias ──────────────────────────────────────────────────────
        result = await db.execute(select(Note.id).where(Note.alias == token))
        found = result.scalar_one_or_none()
        if found is not None:
            return found

        # ── 2. encoded id ─────────────────────────────────────────────────
        if len(token) == ENCODED_ID_LENGTH:
            try:
                candidate = decode_note_id(token)
            except NoteIdDecodeError:
                candidate = None
            if candidate is not None:
                result = await db.execute(select(Note.id).where(Note.id == candidate))
                found = result.scalar_one_or_none()
                if found is not None:
                    return found

        # ── 3. shortid ────────────────────────────────────────────────────
        result = await db.execute(select(Note.id).where(Note.shortid == token))
        found = result.scalar_one_or_none()
        if found is not None:
            return found

        # ── 4. raw UUID ───────────────────────────────────────────────────
        candidate = _as_uuid(token)
        if candidate is not None:
            result = await db.execute(select(Note.id).where(Note.id == candidate))
            return result.scalar_one_or_none()

        return None

    except NoteIdDecodeError:
        raise
    except Exception as e:
        logger.error("Lookup failed while parsing note id %r: %s", token, str(e))
        raise NoteIdDecodeError(
            token,
            message="Note identifier lookup failed",
            context={"error_type": type(e).__name__},
        ) from e
