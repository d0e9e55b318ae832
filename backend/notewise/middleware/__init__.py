# Middleware package init
"""
Notewise Backend — Middleware Package
=======================================

Middleware Chain (request direction):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → Route

    Rate limiting runs first so refused requests cost nothing; the request id
    is set before the access log line is written so both share the id.
"""
