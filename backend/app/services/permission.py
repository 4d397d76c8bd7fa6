"""
PadPress Backend — View Permission Evaluator
=============================================

What:  Decides whether a caller may *view* a note.
How:   One pure function, `can_view`, holds the rules. The two call shapes
       used by the rest of the service are thin adapters over it, so they
       cannot drift apart:

       check_view_permission(caller, note)
           Live request: the session's caller is the viewer.
       check_view_permission_as(note, is_login, user_id)
           Primitives: used before a note is written, with the prospective
           owner standing in as the viewer.

Rules:
    ┌──────────────────────┬───────────────────────────────────────────┐
    │ permission           │ allowed when                              │
    ├──────────────────────┼───────────────────────────────────────────┤
    │ private              │ authenticated AND viewer is the owner     │
    │ limited, protected   │ authenticated                             │
    │ anything else        │ always                                    │
    └──────────────────────┴───────────────────────────────────────────┘
"""

import uuid
from typing import Optional

from app.auth import Caller
from app.models.note import Note

RESTRICTED_TO_OWNER = frozenset({"private"})
RESTRICTED_TO_SIGNED_IN = frozenset({"limited", "protected"})


def can_view(
    permission: Optional[str],
    is_authenticated: bool,
    viewer_id: Optional[uuid.UUID],
    owner_id: Optional[uuid.UUID],
) -> bool:
    if permission in RESTRICTED_TO_OWNER:
        return is_authenticated and viewer_id is not None and viewer_id == owner_id
    if permission in RESTRICTED_TO_SIGNED_IN:
        return is_authenticated
    return True


def check_view_permission(caller: Caller, note: Note) -> bool:
    return can_view(note.permission, caller.is_authenticated, caller.user_id, note.owner_id)


def check_view_permission_as(note: Note, is_login: bool, user_id: Optional[uuid.UUID]) -> bool:
    return can_view(note.permission, is_login, user_id, note.owner_id)
