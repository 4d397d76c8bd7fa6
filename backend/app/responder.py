"""
PadPress Backend — Error Responder
===================================

What:  Turns a failure kind into what the browser gets back.
How:   Rendered `error.html` for most kinds, a sign-in redirect for
       anonymous callers hitting a forbidden note, and a plain-text body for
       503. Registered as exception handlers in main.py.

    ┌──────────────────────┬────────┬──────────────────────────────────────┐
    │ kind                 │ status │ response                             │
    ├──────────────────────┼────────┼──────────────────────────────────────┤
    │ Forbidden (signed in)│ 403    │ error page                           │
    │ Forbidden (anonymous)│ 302    │ {server}/?next=<url> + flash notice  │
    │ NotFound             │ 404    │ error page                           │
    │ BadRequest           │ 400    │ error page                           │
    │ PayloadTooLarge      │ 413    │ error page                           │
    │ InternalError        │ 500    │ error page (logged first)            │
    │ ServiceUnavailable   │ 503    │ plain text                           │
    └──────────────────────┴────────┴──────────────────────────────────────┘

The page only ever shows the (code, detail, message) triple.
"""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from app.auth import flash, get_caller

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

FORBIDDEN_FLASH = "You are not allowed to access this page. Maybe try logging in?"
BUSY_MESSAGE = "I'm busy right now, try again later."


def response_error(request: Request, code: int, detail: str, msg: str) -> Response:
    return templates.TemplateResponse(
        request,
        "error.html",
        {
            "title": f"{code} {detail} {msg}",
            "code": code,
            "detail": detail,
            "msg": msg,
        },
        status_code=code,
    )


def error_forbidden(request: Request) -> Response:
    if get_caller(request).is_authenticated:
        return response_error(request, 403, "Forbidden", "oh no.")

    original = request.url.path
    if request.url.query:
        original += "?" + request.url.query
    next_url = f"{request.app.state.server_url}/?{urlencode({'next': original})}"
    if "session" in request.scope:
        flash(request, "error", FORBIDDEN_FLASH)
    return RedirectResponse(next_url, status_code=302)


def error_not_found(request: Request) -> Response:
    return response_error(request, 404, "Not Found", "oops.")


def error_bad_request(request: Request) -> Response:
    return response_error(request, 400, "Bad Request", "something not right.")


def error_too_long(request: Request) -> Response:
    return response_error(request, 413, "Payload Too Large", "Shorten your note!")


def error_internal_error(request: Request) -> Response:
    return response_error(request, 500, "Internal Error", "wtf.")


def error_service_unavailable(retry_after: Optional[int] = None) -> Response:
    headers = {"Retry-After": str(retry_after)} if retry_after else None
    return PlainTextResponse(BUSY_MESSAGE, status_code=503, headers=headers)
