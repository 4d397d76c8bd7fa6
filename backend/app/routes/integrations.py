"""
PadPress Backend — GitHub / GitLab Route Handlers
==================================================

Routes:
    GET /github/{id}/{action}?code=&state=   gist | (default) editor redirect
    GET /gitlab/{id}/{action}                projects | (default) editor redirect

Both resolve the note and run the view check before any outbound call.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Caller, get_caller
from app.database import get_db_session
from app.deps import get_dispatcher, resolve_or_create
from app.services.actions import ActionDispatcher

router = APIRouter(tags=["Integrations"])


@router.get("/github/{note_id}/{action}", summary="GitHub actions: gist")
async def github_actions(
    request: Request,
    background_tasks: BackgroundTasks,
    note_id: str,
    action: str,
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
    dispatcher: ActionDispatcher = Depends(get_dispatcher),
) -> Response:
    result = await resolve_or_create(request, background_tasks, db, caller, note_id)
    if isinstance(result, Response):
        return result
    return await dispatcher.github(result, action, code, state)


@router.get("/gitlab/{note_id}/{action}", summary="GitLab actions: projects")
async def gitlab_actions(
    request: Request,
    background_tasks: BackgroundTasks,
    note_id: str,
    action: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
    dispatcher: ActionDispatcher = Depends(get_dispatcher),
) -> Response:
    result = await resolve_or_create(request, background_tasks, db, caller, note_id)
    if isinstance(result, Response):
        return result
    return await dispatcher.gitlab(db, result, action, caller)
