"""
PadPress Backend — Note Route Handlers
=======================================

What:  Note creation, the publish-note action family and the editor page.
How:   Handlers stay thin: resolve (or create on free URL), then hand the
       note to the action dispatcher or render a template. Failures are
       raised and rendered by the global exception handlers.

Routes:
    POST /new, POST /note    create from the raw request body
    GET  /new                create an empty note
    GET  /note/{id}/{action} download | edit | (default) publish redirect
    GET  /{id}               editor page (registered last: catch-all)
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Caller, get_caller, pop_flashes
from app.database import get_db_session
from app.deps import (
    create_and_redirect,
    get_dispatcher,
    get_history_service,
    get_note_service,
    resolve_or_create,
)
from app.responder import templates
from app.services.actions import ActionDispatcher
from app.services.history_service import HistoryService
from app.services.note_meta import decode_title, extract_meta, generate_web_title, parse_meta
from app.services.note_service import NoteService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])


@router.post("/new", status_code=302, summary="Create a note from the request body")
@router.post("/note", status_code=302, summary="Create a note from the request body")
async def create_note(
    request: Request,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
    note_service: NoteService = Depends(get_note_service),
    history: HistoryService = Depends(get_history_service),
) -> Response:
    """
    Create a note whose content is the raw request body.

    Error responses (global handlers):
        413: body longer than DOCUMENT_MAX_LENGTH (nothing written)
        403 / sign-in redirect: anonymous creation disabled
        500: store write failed
    """
    raw = await request.body()
    body = raw.decode("utf-8", errors="replace")
    logger.info("Create request: %d characters, caller=%s", len(body), caller.user_id)
    return await create_and_redirect(request, background_tasks, db, caller, note_service, history, body)


@router.get("/new", status_code=302, summary="Create an empty note")
async def new_empty_note(
    request: Request,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
    note_service: NoteService = Depends(get_note_service),
    history: HistoryService = Depends(get_history_service),
) -> Response:
    return await create_and_redirect(request, background_tasks, db, caller, note_service, history, "")


@router.get("/note/{note_id}", summary="Note actions (default: published view)")
@router.get("/note/{note_id}/{action}", summary="Note actions: download, edit")
async def publish_note_actions(
    request: Request,
    background_tasks: BackgroundTasks,
    note_id: str,
    action: Optional[str] = None,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
    dispatcher: ActionDispatcher = Depends(get_dispatcher),
) -> Response:
    result = await resolve_or_create(request, background_tasks, db, caller, note_id)
    if isinstance(result, Response):
        return result
    return dispatcher.publish_note(result, action)


def register_editor_page(router: APIRouter) -> None:
    """
    Attach GET /{note_id}. Called after every other router is included so
    the catch-all never shadows a more specific path.
    """

    @router.get("/{note_id}", summary="Editor page for a note")
    async def show_note(
        request: Request,
        background_tasks: BackgroundTasks,
        note_id: str,
        caller: Caller = Depends(get_caller),
        db: AsyncSession = Depends(get_db_session),
    ) -> Response:
        result = await resolve_or_create(request, background_tasks, db, caller, note_id)
        if isinstance(result, Response):
            return result

        note = result
        meta, _ = extract_meta(note.content)
        parsed = parse_meta(meta)
        title = generate_web_title(parsed.title or decode_title(note.title))
        return templates.TemplateResponse(
            request,
            "note.html",
            {"title": title, "note_id": note.canonical_token, "flashes": pop_flashes(request)},
            headers={
                "Cache-Control": "private",
                "X-Robots-Tag": "noindex, nofollow",
            },
        )


editor_router = APIRouter(tags=["Notes"])
register_editor_page(editor_router)
