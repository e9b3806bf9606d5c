"""
VideoTube Backend — Middleware Package
=======================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [CORS] → [Body Limit] → Route Handler

    1. Request ID: correlation ID for every later log line
    2. Logging:    access log with status and duration
    3. CORS:       preflight handling; only the configured origin is allowed
    4. Body Limit: oversized JSON/URL-encoded bodies never reach a handler
"""
