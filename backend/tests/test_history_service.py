"""
PadPress Backend — History Recorder Tests
==========================================

What we test:
    ✅ Upsert executed and committed in its own session
    ✅ Store failures are swallowed (logged only)
    ✅ schedule() queues at most one write per (user, note) per request
"""

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.services.history_service import HistoryService


def _session_factory(session):
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


class TestUpdateHistory:

    @pytest.mark.asyncio
    async def test_upsert_committed(self, mock_db_session, make_note):
        service = HistoryService(session_factory=_session_factory(mock_db_session))

        await service.update_history(uuid4(), make_note(alias="deck"), "content")

        mock_db_session.execute.assert_awaited_once()
        mock_db_session.commit.assert_awaited_once()
        statement = mock_db_session.execute.await_args.args[0]
        assert statement.table.name == "histories"

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, mock_db_session, make_note, caplog):
        mock_db_session.execute = AsyncMock(side_effect=RuntimeError("connection lost"))
        service = HistoryService(session_factory=_session_factory(mock_db_session))

        with caplog.at_level(logging.ERROR, logger="app.services.history_service"):
            await service.update_history(uuid4(), make_note(), "content")

        mock_db_session.commit.assert_not_awaited()
        assert "History update failed" in caplog.text


class TestSchedule:

    def test_one_write_per_user_and_note(self, make_note):
        service = HistoryService(session_factory=MagicMock())
        request = SimpleNamespace(state=SimpleNamespace())
        background = MagicMock()
        user_id = uuid4()
        note = make_note()

        assert service.schedule(request, background, user_id, note, note.content) is True
        assert service.schedule(request, background, user_id, note, note.content) is False

        background.add_task.assert_called_once_with(service.update_history, user_id, note, note.content)

    def test_other_user_is_queued(self, make_note):
        service = HistoryService(session_factory=MagicMock())
        request = SimpleNamespace(state=SimpleNamespace())
        background = MagicMock()
        note = make_note()

        service.schedule(request, background, uuid4(), note, note.content)
        service.schedule(request, background, uuid4(), note, note.content)

        assert background.add_task.call_count == 2
