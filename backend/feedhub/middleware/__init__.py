# Middleware package init
"""
FeedHub Backend — Middleware Package
=====================================

Cross-cutting concerns applied to every request, plus the authorization gate
used by protected routes.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first: every later log line can carry it
    2. Logging: method, path, status, duration

The authorization gate (auth.py) is a FastAPI dependency, not a Starlette
middleware: only some routes require it, and it needs the request's
database session.
"""
