"""
PadPress Backend — Note Action Dispatcher
==========================================

What:  Runs the behaviour selected by the trailing action segment of a note
       URL, once the note has been resolved and the view check has passed.
How:   One `match` per action family. Every family has a default arm, so an
       unknown or empty action token always degrades to a redirect.

Action Families:
    /note/{id}/{action}     download → markdown attachment
                            edit     → {server}/{alias|shortid}
                            *        → {server}/s/{shortid}
    /slide/{id}/{action}    edit     → {server}/{alias|shortid}
                            *        → {server}/p/{shortid}
    /github/{id}/{action}   gist     → OAuth exchange + gist export (403 on any failure)
                            *        → {server}/{alias|shortid}
    /gitlab/{id}/{action}   projects → JSON project listing (best effort)
                            *        → {server}/{alias|shortid}
"""

import logging
from enum import Enum
from typing import Optional
from urllib.parse import quote

from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Caller
from app.config import Settings
from app.exceptions import ExternalServiceError, ForbiddenError, NotFoundError
from app.models.note import Note
from app.schemas.note import GitLabProjectsResponse
from app.services.integrations import GitHubGistExporter, GitLabClient
from app.services.note_meta import decode_title
from app.services.note_store import NoteStore, note_store

logger = logging.getLogger(__name__)


class NoteAction(str, Enum):
    DOWNLOAD = "download"
    EDIT = "edit"


class SlideAction(str, Enum):
    EDIT = "edit"


class GitHubAction(str, Enum):
    GIST = "gist"


class GitLabAction(str, Enum):
    PROJECTS = "projects"


# Headers of the download endpoint. It doubles as a public raw-markdown API,
# hence the open CORS policy.
DOWNLOAD_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Range",
    "Access-Control-Expose-Headers": "Cache-Control, Content-Encoding, Content-Range",
    "Cache-Control": "private",
    "X-Robots-Tag": "noindex, nofollow",
}


def download_filename(note: Note) -> str:
    """Percent-encoded decoded title plus `.md`, safe for Content-Disposition."""
    return quote(decode_title(note.title), safe="!~*'()") + ".md"


def gist_filename(note: Note) -> str:
    return decode_title(note.title).replace("/", " ") + ".md"


class ActionDispatcher:

    def __init__(
        self,
        server_url: str,
        gist_exporter: GitHubGistExporter,
        gitlab_client: GitLabClient,
        store: NoteStore = note_store,
    ):
        self.server_url = server_url.rstrip("/")
        self.gist_exporter = gist_exporter
        self.gitlab_client = gitlab_client
        self.store = store

    @classmethod
    def from_settings(cls, settings: Settings) -> "ActionDispatcher":
        return cls(
            server_url=settings.server_url,
            gist_exporter=GitHubGistExporter(
                client_id=settings.github_client_id,
                client_secret=settings.github_client_secret,
            ),
            gitlab_client=GitLabClient(
                base_url=settings.gitlab_base_url,
                version=settings.gitlab_version,
            ),
        )

    # ── URL builders ──────────────────────────────────────────────────────

    def note_url(self, note: Note) -> str:
        return f"{self.server_url}/{note.canonical_token}"

    def publish_url(self, note: Note) -> str:
        return f"{self.server_url}/s/{note.shortid}"

    def slide_url(self, note: Note) -> str:
        return f"{self.server_url}/p/{note.shortid}"

    def _redirect(self, url: str) -> RedirectResponse:
        return RedirectResponse(url, status_code=302)

    # ── Families ──────────────────────────────────────────────────────────

    def publish_note(self, note: Note, action: Optional[str]) -> Response:
        match action:
            case NoteAction.DOWNLOAD:
                return self.download(note)
            case NoteAction.EDIT:
                return self._redirect(self.note_url(note))
            case _:
                return self._redirect(self.publish_url(note))

    def publish_slide(self, note: Note, action: Optional[str]) -> Response:
        match action:
            case SlideAction.EDIT:
                return self._redirect(self.note_url(note))
            case _:
                return self._redirect(self.slide_url(note))

    async def github(
        self,
        note: Note,
        action: Optional[str],
        code: Optional[str],
        state: Optional[str],
    ) -> Response:
        match action:
            case GitHubAction.GIST:
                return await self.export_gist(note, code, state)
            case _:
                return self._redirect(self.note_url(note))

    async def gitlab(
        self,
        db: AsyncSession,
        note: Note,
        action: Optional[str],
        caller: Caller,
    ) -> Response:
        match action:
            case GitLabAction.PROJECTS:
                return await self.gitlab_projects(db, caller)
            case _:
                return self._redirect(self.note_url(note))

    # ── Actions ───────────────────────────────────────────────────────────

    def download(self, note: Note) -> Response:
        headers = dict(DOWNLOAD_HEADERS)
        headers["Content-Disposition"] = f"attachment; filename={download_filename(note)}"
        return Response(
            content=note.content,
            media_type="text/markdown; charset=UTF-8",
            headers=headers,
        )

    async def export_gist(self, note: Note, code: Optional[str], state: Optional[str]) -> Response:
        """
        Raises:
            ForbiddenError: code/state missing, or any GitHub step failed.
                No partial result is ever returned.
        """
        if not code or not state:
            raise ForbiddenError(message="Missing OAuth code or state")

        try:
            html_url = await self.gist_exporter.export(
                code=code,
                state=state,
                filename=gist_filename(note),
                content=note.content,
            )
        except ExternalServiceError as e:
            logger.warning("Gist export for note %s failed: %s | Context: %s", note.id, e.message, e.context)
            raise ForbiddenError(message="Gist export failed", context=e.context)

        response = self._redirect(html_url)
        response.headers["Referrer-Policy"] = "no-referrer"
        return response

    async def gitlab_projects(self, db: AsyncSession, caller: Caller) -> Response:
        """
        Best-effort project listing for the signed-in caller.

        Raises:
            ForbiddenError: caller is anonymous
            NotFoundError: caller's user record is gone
            DatabaseError: user lookup failed
        """
        if not caller.is_authenticated:
            raise ForbiddenError(message="Sign in to list GitLab projects")

        user = await self.store.find_user_by_id(db, caller.user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(caller.user_id))

        result = GitLabProjectsResponse(
            base_url=self.gitlab_client.base_url,
            version=self.gitlab_client.version,
            access_token=user.access_token,
            profile_id=user.profileid,
        )
        try:
            result.projects = await self.gitlab_client.list_projects(user.access_token)
        except ExternalServiceError as e:
            # Degrade: answer without the projects field
            logger.warning("GitLab project listing failed: %s | Context: %s", e.message, e.context)

        omit = {"projects"} if result.projects is None else None
        return JSONResponse(content=result.model_dump(by_alias=True, exclude=omit))
