"""
SocialHub Backend: Middleware Package
=======================================

Middleware Chain (request direction):
    Request → [Request ID] → [Rate Limit] → [Access Log] → [CORS] → Route

Request ID runs first so that 429 responses and every access log line carry
the correlation id. Rate limiting runs before the access log, so rejected
requests are logged once by the limiter itself.
"""
