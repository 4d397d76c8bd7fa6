"""
PadPress Backend — Application Package
=======================================

What: Note resolution, access control and action dispatch for the PadPress
      collaborative markdown editor.
Who:  Imported by uvicorn (`app.main:app`), Alembic and pytest.

Layers:

    ┌─────────────────────────────────────┐
    │   Routes + Responder (HTTP layer)   │  ← status codes, redirects, pages
    ├─────────────────────────────────────┤
    │   Services (resolve, check, act)    │  ← resolver, permission, actions
    ├─────────────────────────────────────┤
    │   Models & Schemas (data)           │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (persistence)            │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
