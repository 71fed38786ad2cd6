# Middleware package init
"""
Deskmate Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: generate the correlation ID used by every log line
    2. Logging: one access line per request, with status and duration

Responses pass back through the chain in reverse, so the request ID header
is set and the access line sees the final status code.
"""
