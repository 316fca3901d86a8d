# Middleware package init
"""
StaffDir Backend: Middleware Package
=====================================

What:  Cross-cutting stages applied to every request before routing.

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Rate Limit first: rejected requests cost nothing downstream
    2. Request ID: correlation id for logs and error bodies
    3. Logging: access line with status and duration
    4. CORS: answers preflights and decorates allowed-origin responses

    Responses travel back through the same chain in reverse, so the access
    log sees the final status and the rate limiter adds RateLimit-* headers
    last.
"""
