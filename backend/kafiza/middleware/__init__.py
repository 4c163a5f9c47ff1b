"""
Kafiza Backend — Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Execution order (outermost first):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line and the error envelope
    carry the same correlation ID.
"""
