"""
PadPress Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the test suite.
How:   No database: sessions and the note store are mocks, the app is built
       with its own Settings and driven through httpx's ASGITransport.

Fixtures:
    ├── mock_db_session: AsyncSession stand-in
    ├── make_note:       factory for transient Note rows
    ├── test_settings:   Settings with a fixed server URL and secret
    ├── mock_store:      NoteStore stand-in (find/increment/user lookup)
    ├── mock_history:    HistoryService stand-in
    ├── app:             FastAPI app wired to the mocks above
    └── test_client:     httpx AsyncClient on the app (no redirects followed)
"""

import base64
import json
import os
from datetime import datetime, timezone
from typing import Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from itsdangerous import TimestampSigner

os.environ.setdefault("LOG_LEVEL", "WARNING")

from app.config import Settings  # noqa: E402
from app.models.note import Note  # noqa: E402

SERVER_URL = "http://pad.test"
SESSION_SECRET = "test-session-secret"
SESSION_COOKIE = "padpress.sid"


def signed_session(data: dict, secret: str = SESSION_SECRET) -> str:
    """Cookie value as Starlette's SessionMiddleware writes it."""
    payload = base64.b64encode(json.dumps(data).encode("utf-8"))
    return TimestampSigner(secret).sign(payload).decode("utf-8")


@pytest.fixture
def mock_db_session():
    """
    Mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = note
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def make_note():
    def _make(
        permission: str = "editable",
        owner_id: Optional[UUID] = None,
        alias: Optional[str] = None,
        shortid: str = "abc123",
        title: str = "Weekly sync",
        content: str = "# Weekly sync\n\nAgenda",
        viewcount: int = 0,
    ) -> Note:
        return Note(
            id=uuid4(),
            shortid=shortid,
            alias=alias,
            owner_id=owner_id,
            lastchange_user_id=owner_id,
            permission=permission,
            title=title,
            content=content,
            viewcount=viewcount,
            created_at=datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc),
        )

    return _make


@pytest.fixture
def test_settings():
    return Settings(
        server_url=SERVER_URL + "/",
        session_secret=SESSION_SECRET,
        document_max_length=1_000_000,
        allow_free_url=False,
        allow_anonymous=True,
        log_level="WARNING",
    )


@pytest.fixture
def mock_store():
    store = MagicMock()
    store.find_note_by_key = AsyncMock(return_value=None)
    store.increment_view_count = AsyncMock(return_value=None)
    store.find_user_by_id = AsyncMock(return_value=None)
    return store


@pytest.fixture
def mock_history():
    history = MagicMock()
    history.schedule = MagicMock(return_value=True)
    return history


@pytest.fixture
def app(test_settings, mock_db_session, mock_store, mock_history):
    """
    Application under test.

    The resolver, dispatcher and slide view share `mock_store`; note ids are
    decoded by whatever the test patches `parse_note_id` to return.
    """
    from app.database import get_db_session
    from app.main import create_app

    application = create_app(test_settings)
    application.state.note_store = mock_store
    application.state.resolver.store = mock_store
    application.state.dispatcher.store = mock_store
    application.state.history_service = mock_history

    async def _db():
        yield mock_db_session

    application.dependency_overrides[get_db_session] = _db
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    Usage:
        async def test_health(test_client):
            response = await test_client.get("/note/abc123/edit")
            assert response.status_code == 302
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=SERVER_URL) as client:
        yield client


@pytest.fixture
def sign_in(test_client):
    """Give `test_client` a signed session for the given user id."""

    def _sign_in(user_id: UUID) -> None:
        test_client.cookies.set(SESSION_COOKIE, signed_session({"user_id": str(user_id)}))

    return _sign_in
