# Middleware package init
"""
AssetDesk Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation id, stored in a ContextVar for loggers
    2. Logging: one access line per request, tagged with that id
    3. GZip / CORS: FastAPI's built-in middleware

    Responses pass back through the chain in reverse, which is where the
    X-Request-ID header and the request duration are added.
"""
