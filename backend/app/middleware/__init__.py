# Middleware package init
"""
PadPress Backend — Middleware Package
======================================

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → [Session] → Route

    1. Rate Limit: answers 503 "busy" before any other work
    2. Request ID: correlation id for every log line of the request
    3. Logging: one access line per request with status and duration
    4. Session: decodes the signed cookie so handlers see the caller
"""
