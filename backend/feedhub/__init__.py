"""
FeedHub Backend — Application Package Initializer
==================================================

What: Marks the `feedhub` directory as a Python package.
Why:  Enables module imports like `from feedhub.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │      Routes + Auth Gate (HTTP)      │  ← status codes, bearer extraction
    ├─────────────────────────────────────┤
    │   Services + Policies (Business)    │  ← sessions, ownership rules, feed
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database / Object Store (Storage)  │  ← injected at startup, no globals
    └─────────────────────────────────────┘

    A background reaper (APScheduler) sits beside the request path and only
    talks to the database layer.
"""

__version__ = "1.0.0"
