"""
PadPress Backend — Note Creation Service Unit Tests
====================================================

What:  Tests for NoteService (body checks, owner decision, store write).
How:   Mock DB session; nothing touches a real database.

What we test:
    ✅ Oversized body raises 413 before anything is added to the session
    ✅ Anonymous creation refused when disabled
    ✅ Owner, permission defaults and alias on the written note
    ✅ First revision written alongside the note
    ✅ Flush failure becomes NoteCreateError
    ✅ Pre-check refuses notes invisible to their creator
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.auth import ANONYMOUS, Caller
from app.exceptions import ForbiddenError, NoteCreateError, PayloadTooLargeError
from app.models.note import Note
from app.models.revision import Revision
from app.services.note_service import NoteService


def _service(**overrides) -> NoteService:
    options = {"document_max_length": 1_000_000, "allow_anonymous": True}
    options.update(overrides)
    return NoteService(**options)


class TestPrepareBody:

    def test_empty(self):
        assert _service().prepare_body(None) == ""
        assert _service().prepare_body("") == ""

    def test_strips_carriage_returns(self):
        assert _service().prepare_body("a\r\nb\r") == "a\nb"

    def test_exact_limit_accepted(self):
        assert _service(document_max_length=5).prepare_body("12345") == "12345"

    def test_over_limit(self):
        with pytest.raises(PayloadTooLargeError) as exc_info:
            _service(document_max_length=5).prepare_body("123456")
        assert exc_info.value.max_length == 5
        assert exc_info.value.actual_length == 6


class TestNewNote:

    @pytest.mark.asyncio
    async def test_too_long_writes_nothing(self, mock_db_session):
        body = "x" * 2_000_000

        with pytest.raises(PayloadTooLargeError):
            await _service().new_note(mock_db_session, Caller(user_id=uuid4()), body)

        mock_db_session.add.assert_not_called()
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_anonymous_refused_when_disabled(self, mock_db_session):
        with pytest.raises(ForbiddenError):
            await _service(allow_anonymous=False).new_note(mock_db_session, ANONYMOUS, "hello")

        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_signed_in_caller_owns_note(self, mock_db_session):
        user_id = uuid4()

        note = await _service(default_permission="limited").new_note(
            mock_db_session, Caller(user_id=user_id), "# Plan\r\n\r\ntext"
        )

        assert note.owner_id == user_id
        assert note.lastchange_user_id == user_id
        assert note.permission == "limited"
        assert note.content == "# Plan\n\ntext"
        assert note.title == "Plan"
        assert note.alias is None
        assert len(note.shortid) == 10

        added = [call.args[0] for call in mock_db_session.add.call_args_list]
        assert isinstance(added[0], Note)
        assert isinstance(added[1], Revision)
        assert added[1].note_id == note.id
        assert added[1].content == note.content
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_anonymous_note_uses_anonymous_default(self, mock_db_session):
        note = await _service(anonymous_default_permission="freely").new_note(
            mock_db_session, ANONYMOUS, ""
        )

        assert note.owner_id is None
        assert note.permission == "freely"
        assert note.canonical_token == note.shortid

    @pytest.mark.asyncio
    async def test_alias_becomes_canonical_token(self, mock_db_session):
        note = await _service().new_note(mock_db_session, ANONYMOUS, "", alias="meeting-notes")

        assert note.alias == "meeting-notes"
        assert note.canonical_token == "meeting-notes"

    @pytest.mark.asyncio
    async def test_invisible_to_creator_refused(self, mock_db_session):
        """An anonymous note defaulting to a signed-in-only level could never be opened."""
        service = _service(anonymous_default_permission="protected")

        with pytest.raises(ForbiddenError):
            await service.new_note(mock_db_session, ANONYMOUS, "hello")

        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_flush_failure(self, mock_db_session):
        mock_db_session.flush = AsyncMock(side_effect=RuntimeError("duplicate key value"))

        with pytest.raises(NoteCreateError) as exc_info:
            await _service().new_note(mock_db_session, ANONYMOUS, "", alias="taken")

        assert exc_info.value.context["alias"] == "taken"
