"""
PadPress Backend — Caller Identity
===================================

What:  Turns the signed session cookie into a `Caller` value.
How:   Starlette's SessionMiddleware (registered in main.py) decodes the
       cookie into `request.session`. The sign-in flow, which lives outside
       this service, stores the user's id under "user_id".
Who:   Route handlers depend on `get_caller`; services receive the Caller.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"
FLASH_KEY = "flash"


@dataclass(frozen=True)
class Caller:
    """The party making the current request."""

    user_id: Optional[uuid.UUID] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = Caller()


def get_caller(request: Request) -> Caller:
    """FastAPI dependency: current caller, anonymous when no valid session."""
    raw = request.session.get(SESSION_USER_KEY) if "session" in request.scope else None
    if not raw:
        return ANONYMOUS
    try:
        return Caller(user_id=uuid.UUID(str(raw)))
    except ValueError:
        logger.warning("Ignoring session with malformed user id")
        return ANONYMOUS


def flash(request: Request, category: str, message: str) -> None:
    """Queue a one-shot message for the next rendered page."""
    messages = request.session.setdefault(FLASH_KEY, {})
    messages.setdefault(category, []).append(message)


def pop_flashes(request: Request) -> dict:
    if "session" not in request.scope:
        return {}
    return request.session.pop(FLASH_KEY, {}) or {}
