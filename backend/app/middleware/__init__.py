# Middleware package init
"""
Disc Rescue Backend — Middleware Package
=========================================

Middleware Chain:
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Responses travel back through the same chain in reverse, so the request
    ID header and the access-log line both see the final status code.
"""
