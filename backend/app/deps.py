"""
PadPress Backend — Route Dependencies
======================================

What:  FastAPI dependencies handing route handlers the services built in
       create_app(), plus the shared "resolve, or create on free URL" step.
How:   Services live on `app.state`; tests swap them with
       `app.dependency_overrides` or by building the app with their own
       settings.
"""

from typing import Union

from fastapi import BackgroundTasks, Request
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Caller
from app.exceptions import NotFoundError
from app.models.note import Note
from app.services.actions import ActionDispatcher
from app.services.history_service import HistoryService
from app.services.note_resolver import NoteResolver
from app.services.note_service import NoteService
from app.services.note_store import NoteStore


def get_resolver(request: Request) -> NoteResolver:
    return request.app.state.resolver


def get_dispatcher(request: Request) -> ActionDispatcher:
    return request.app.state.dispatcher


def get_note_service(request: Request) -> NoteService:
    return request.app.state.note_service


def get_history_service(request: Request) -> HistoryService:
    return request.app.state.history_service


def get_note_store(request: Request) -> NoteStore:
    return request.app.state.note_store


async def create_and_redirect(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession,
    caller: Caller,
    note_service: NoteService,
    history: HistoryService,
    body: str,
    alias: str | None = None,
) -> RedirectResponse:
    """
    Create a note, queue the creator's history entry, redirect to the note.

    Raises whatever NoteService.new_note raises (413, 403, 500).
    """
    note = await note_service.new_note(db, caller, body, alias=alias)
    if caller.is_authenticated:
        history.schedule(request, background_tasks, caller.user_id, note, note.content)
    return RedirectResponse(f"{request.app.state.server_url}/{note.canonical_token}", status_code=302)


async def resolve_or_create(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession,
    caller: Caller,
    token: str,
    include_users: bool = False,
    allow_create: bool = True,
) -> Union[Note, Response]:
    """
    Resolve `token` for `caller`.

    Returns the note when it exists and may be viewed, or the redirect to a
    freshly created note when free-URL mode applies. With `allow_create`
    off an unused token is a 404 instead. Errors propagate to the
    exception handlers.
    """
    resolution = await get_resolver(request).resolve(db, caller, token, include_users=include_users)
    if resolution.create_alias is not None:
        if not allow_create:
            raise NotFoundError(resource="note", resource_id=token)
        return await create_and_redirect(
            request,
            background_tasks,
            db,
            caller,
            get_note_service(request),
            get_history_service(request),
            body="",
            alias=resolution.create_alias,
        )
    return resolution.note
