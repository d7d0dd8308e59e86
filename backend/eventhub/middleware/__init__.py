# Middleware package init
"""
EventHub Backend — Middleware Package
=======================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

The request id is assigned first so the access log line and any error
envelope carry the same id.
"""
