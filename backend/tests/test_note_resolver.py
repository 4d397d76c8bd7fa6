"""
PadPress Backend — Note Resolver Unit Tests
============================================

What we test:
    ✅ Existing, viewable note is returned
    ✅ Missing note: 404, or a create outcome in free-URL mode
    ✅ Forbidden tokens never trigger free-URL creation
    ✅ Decode failures become InternalError, or BadRequestError when configured
    ✅ Denied views raise ForbiddenError
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from app.auth import ANONYMOUS, Caller
from app.exceptions import (
    BadRequestError,
    ForbiddenError,
    InternalError,
    NoteIdDecodeError,
    NotFoundError,
)
from app.services.note_resolver import NoteResolver, ResolverConfig

FORBIDDEN = frozenset({"robots.txt", "favicon.ico"})


def _store(note=None):
    store = MagicMock()
    store.find_note_by_key = AsyncMock(return_value=note)
    return store


class TestResolve:

    @pytest.mark.asyncio
    async def test_returns_viewable_note(self, mock_db_session, make_note):
        note = make_note()
        store = _store(note)
        resolver = NoteResolver(ResolverConfig(), store=store)

        with patch("app.services.note_resolver.parse_note_id", AsyncMock(return_value=note.id)):
            resolution = await resolver.resolve(mock_db_session, ANONYMOUS, "abc123")

        assert resolution.note is note
        assert resolution.create_alias is None
        store.find_note_by_key.assert_awaited_once_with(mock_db_session, note.id, include_users=False)

    @pytest.mark.asyncio
    async def test_include_users_is_forwarded(self, mock_db_session, make_note):
        note = make_note()
        store = _store(note)
        resolver = NoteResolver(ResolverConfig(), store=store)

        with patch("app.services.note_resolver.parse_note_id", AsyncMock(return_value=note.id)):
            await resolver.resolve(mock_db_session, ANONYMOUS, "abc123", include_users=True)

        store.find_note_by_key.assert_awaited_once_with(mock_db_session, note.id, include_users=True)

    @pytest.mark.asyncio
    async def test_missing_note_not_found_without_free_url(self, mock_db_session):
        resolver = NoteResolver(ResolverConfig(allow_free_url=False), store=_store())

        with patch("app.services.note_resolver.parse_note_id", AsyncMock(return_value=None)):
            with pytest.raises(NotFoundError):
                await resolver.resolve(mock_db_session, ANONYMOUS, "meeting-notes")

    @pytest.mark.asyncio
    async def test_missing_note_creates_with_free_url(self, mock_db_session):
        store = _store()
        resolver = NoteResolver(
            ResolverConfig(allow_free_url=True, forbidden_note_ids=FORBIDDEN),
            store=store,
        )

        with patch("app.services.note_resolver.parse_note_id", AsyncMock(return_value=None)):
            resolution = await resolver.resolve(mock_db_session, ANONYMOUS, "meeting-notes")

        assert resolution.note is None
        assert resolution.create_alias == "meeting-notes"
        store.find_note_by_key.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_key_without_row_also_creates(self, mock_db_session):
        """A decodable token whose row is gone behaves like an unknown token."""
        resolver = NoteResolver(ResolverConfig(allow_free_url=True), store=_store(None))

        with patch("app.services.note_resolver.parse_note_id", AsyncMock(return_value=uuid4())):
            resolution = await resolver.resolve(mock_db_session, ANONYMOUS, "gone")

        assert resolution.create_alias == "gone"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["robots.txt", "favicon.ico"])
    async def test_forbidden_tokens_never_created(self, mock_db_session, token):
        resolver = NoteResolver(
            ResolverConfig(allow_free_url=True, forbidden_note_ids=FORBIDDEN),
            store=_store(),
        )

        with patch("app.services.note_resolver.parse_note_id", AsyncMock(return_value=None)):
            with pytest.raises(NotFoundError):
                await resolver.resolve(mock_db_session, ANONYMOUS, token)

    @pytest.mark.asyncio
    async def test_decode_error_is_internal_by_default(self, mock_db_session):
        store = _store()
        resolver = NoteResolver(ResolverConfig(allow_free_url=True), store=store)
        failing = AsyncMock(side_effect=NoteIdDecodeError("bad-token"))

        with patch("app.services.note_resolver.parse_note_id", failing):
            with pytest.raises(InternalError):
                await resolver.resolve(mock_db_session, ANONYMOUS, "bad-token")

        store.find_note_by_key.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_decode_error_as_bad_request(self, mock_db_session):
        resolver = NoteResolver(ResolverConfig(decode_error_as_bad_request=True), store=_store())
        failing = AsyncMock(side_effect=NoteIdDecodeError("bad-token"))

        with patch("app.services.note_resolver.parse_note_id", failing):
            with pytest.raises(BadRequestError):
                await resolver.resolve(mock_db_session, ANONYMOUS, "bad-token")

    @pytest.mark.asyncio
    async def test_private_note_forbidden_for_stranger(self, mock_db_session, make_note):
        note = make_note(permission="private", owner_id=uuid4())
        resolver = NoteResolver(ResolverConfig(), store=_store(note))

        with patch("app.services.note_resolver.parse_note_id", AsyncMock(return_value=note.id)):
            with pytest.raises(ForbiddenError):
                await resolver.resolve(mock_db_session, Caller(user_id=uuid4()), "abc123")

    @pytest.mark.asyncio
    async def test_private_note_visible_to_owner(self, mock_db_session, make_note):
        owner = uuid4()
        note = make_note(permission="private", owner_id=owner)
        resolver = NoteResolver(ResolverConfig(), store=_store(note))

        with patch("app.services.note_resolver.parse_note_id", AsyncMock(return_value=note.id)):
            resolution = await resolver.resolve(mock_db_session, Caller(user_id=owner), "abc123")

        assert resolution.note is note

    @pytest.mark.asyncio
    async def test_limited_note_forbidden_for_anonymous(self, mock_db_session, make_note):
        note = make_note(permission="limited", owner_id=uuid4())
        resolver = NoteResolver(ResolverConfig(), store=_store(note))

        with patch("app.services.note_resolver.parse_note_id", AsyncMock(return_value=note.id)):
            with pytest.raises(ForbiddenError):
                await resolver.resolve(mock_db_session, ANONYMOUS, "abc123")


class TestFreeUrl:

    def test_disabled(self):
        assert NoteResolver(ResolverConfig(allow_free_url=False)).allows_free_url("x") is False

    def test_enabled(self):
        assert NoteResolver(ResolverConfig(allow_free_url=True)).allows_free_url("x") is True

    def test_empty_token(self):
        assert NoteResolver(ResolverConfig(allow_free_url=True)).allows_free_url("") is False
