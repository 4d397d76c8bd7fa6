"""
PadPress Backend — Slide Route Handlers
========================================

What:  The publish-slide action family and the slide presentation view.
How:   Same resolve-then-continue flow as the note routes. The view loads
       owner and last editor eagerly, bumps the view counter, and renders
       the reveal.js page from the note's front matter and body.

Routes:
    GET /slide/{id}/{action}   edit | (default) presentation redirect
    GET /slide/{shortid}       presentation view
    GET /p/{shortid}           presentation view (canonical form)
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Caller, get_caller
from app.database import get_db_session
from app.deps import get_dispatcher, get_history_service, get_note_store, resolve_or_create
from app.exceptions import NotFoundError
from app.models.note import Note
from app.models.user import User
from app.responder import templates
from app.schemas.note import SlideView, UserProfile
from app.services.actions import ActionDispatcher
from app.services.history_service import HistoryService
from app.services.note_meta import (
    decode_title,
    extract_meta,
    generate_description,
    generate_web_title,
    is_reveal_theme,
    parse_meta,
)
from app.services.note_store import NoteStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Slides"])


@router.get("/slide/{note_id}/{action}", summary="Slide actions: edit")
async def publish_slide_actions(
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
    return dispatcher.publish_slide(result, action)


def _profile(user: Optional[User]) -> Optional[UserProfile]:
    profile = User.get_profile(user)
    return UserProfile(**profile) if profile else None


def build_slide_view(note: Note, viewcount: int, csp_nonce: Optional[str] = None) -> SlideView:
    """
    Assemble the slide page context.

    Front-matter values win over derived ones; the description falls back
    to the start of the markdown body.
    """
    raw_meta, markdown = extract_meta(note.content)
    meta = parse_meta(raw_meta)
    slide_options = meta.slide_options or {}

    return SlideView(
        title=generate_web_title(meta.title or decode_title(note.title)),
        description=meta.description or generate_description(markdown),
        viewcount=viewcount,
        createtime=note.created_at,
        updatetime=note.lastchange_at,
        body=markdown,
        theme=is_reveal_theme(slide_options.get("theme")),
        meta=json.dumps(raw_meta, default=str),
        owner=str(note.owner_id) if note.owner_id else None,
        ownerprofile=_profile(note.owner),
        lastchangeuser=str(note.lastchange_user_id) if note.lastchange_user_id else None,
        lastchangeuserprofile=_profile(note.lastchange_user),
        robots=meta.robots,
        ga=meta.ga,
        disqus=meta.disqus,
        csp_nonce=csp_nonce,
    )


@router.get("/slide/{shortid}", summary="Slide presentation view")
@router.get("/p/{shortid}", summary="Slide presentation view")
async def show_slide(
    request: Request,
    background_tasks: BackgroundTasks,
    shortid: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
    store: NoteStore = Depends(get_note_store),
    history: HistoryService = Depends(get_history_service),
) -> Response:
    """
    Render a note as a slide deck.

    Error responses (global handlers):
        302: token is not the note's canonical alias/shortid
        403 / sign-in redirect: view denied
        404: note missing (never created from here), or deleted before the
             view counter was bumped
    """
    result = await resolve_or_create(
        request, background_tasks, db, caller, shortid, include_users=True, allow_create=False
    )
    if isinstance(result, Response):
        return result

    note = result
    if shortid != note.canonical_token:
        return RedirectResponse(
            f"{request.app.state.server_url}/p/{note.canonical_token}",
            status_code=302,
        )

    refreshed = await store.increment_view_count(db, note)
    if refreshed is None:
        raise NotFoundError(resource="note", resource_id=shortid)
    note = refreshed

    view = build_slide_view(note, note.viewcount, csp_nonce=getattr(request.state, "csp_nonce", None))

    if caller.is_authenticated:
        history.schedule(request, background_tasks, caller.user_id, note, note.content)

    logger.debug("Slide view for note %s (views=%d)", note.id, note.viewcount)
    return templates.TemplateResponse(
        request,
        "slide.html",
        view.model_dump(),
        headers={"Cache-Control": "private"},
    )
