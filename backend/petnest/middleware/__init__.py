"""
PetNest Backend — Middleware Package
======================================

Middleware Chain:
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    - Rate Limit first, so abusive clients are turned away before any work
    - Request ID before Logging, so every access line carries the ID
"""
