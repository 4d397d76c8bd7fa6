"""
PadPress Backend — Note Identifier Codec Tests
===============================================

What we test:
    ✅ Encoded id form: 22 url-safe characters, decodes back
    ✅ Lookup order: alias, encoded id, shortid, raw UUID
    ✅ Unknown tokens resolve to None
    ✅ Store failures raise NoteIdDecodeError
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.exceptions import NoteIdDecodeError
from app.services.note_codec import (
    ENCODED_ID_LENGTH,
    SHORTID_LENGTH,
    decode_note_id,
    encode_note_id,
    generate_shortid,
    parse_note_id,
)


def _results(*values):
    """execute() side effects returning the given scalar values in order."""
    results = []
    for value in values:
        result = MagicMock()
        result.scalar_one_or_none.return_value = value
        results.append(result)
    return AsyncMock(side_effect=results)


class TestEncoding:

    def test_encoded_form(self):
        note_id = uuid.UUID("2f1c8c9e-0b7a-4c1d-9a53-6f0e3d2b1a90")
        token = encode_note_id(note_id)

        assert len(token) == ENCODED_ID_LENGTH
        assert "=" not in token
        assert decode_note_id(token) == note_id

    def test_wrong_length(self):
        with pytest.raises(NoteIdDecodeError):
            decode_note_id("short")

    def test_shortid(self):
        shortid = generate_shortid()
        assert len(shortid) == SHORTID_LENGTH
        assert shortid.replace("_", "").replace("-", "").isalnum()


class TestParseNoteId:

    @pytest.mark.asyncio
    async def test_empty_token(self, mock_db_session):
        assert await parse_note_id(mock_db_session, "") is None
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_alias_wins(self, mock_db_session):
        note_id = uuid.uuid4()
        mock_db_session.execute = _results(note_id)

        assert await parse_note_id(mock_db_session, "meeting-notes") == note_id
        assert mock_db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_encoded_id(self, mock_db_session):
        note_id = uuid.uuid4()
        mock_db_session.execute = _results(None, note_id)

        assert await parse_note_id(mock_db_session, encode_note_id(note_id)) == note_id
        assert mock_db_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_shortid(self, mock_db_session):
        note_id = uuid.uuid4()
        mock_db_session.execute = _results(None, note_id)

        assert await parse_note_id(mock_db_session, "abc123") == note_id

    @pytest.mark.asyncio
    async def test_raw_uuid(self, mock_db_session):
        note_id = uuid.uuid4()
        # alias, shortid, raw uuid (36 characters: the encoded form is skipped)
        mock_db_session.execute = _results(None, None, note_id)

        assert await parse_note_id(mock_db_session, str(note_id)) == note_id
        assert mock_db_session.execute.await_count == 3

    @pytest.mark.asyncio
    async def test_unknown(self, mock_db_session):
        mock_db_session.execute = _results(None, None)

        assert await parse_note_id(mock_db_session, "nothing-here") is None

    @pytest.mark.asyncio
    async def test_store_failure(self, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=RuntimeError("connection reset"))

        with pytest.raises(NoteIdDecodeError) as exc_info:
            await parse_note_id(mock_db_session, "abc123")

        assert exc_info.value.token == "abc123"
