# Middleware package init
"""
Angle Backend — Middleware Package
===================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [CORS] → [Request ID] → [Logging] → [GZip] → Route Handler

    1. CORS answers every OPTIONS preflight itself and stamps the
       Access-Control-* headers on every other response, error pages
       included.
    2. Request ID sets the correlation ID before anything logs.
    3. Logging records method, path, status and duration.
    4. GZip compresses bodies over 500 bytes when the client accepts it.
"""
