"""
Rope Puzzle Auto-Fill - Security Middleware

Rate limiting, request size guard, security headers.
"""

from fastapi import Request, HTTPException, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from typing import Callable

from ..config import settings


# ============================================
# RATE LIMITER
# ============================================

limiter = Limiter(key_func=get_remote_address)

GENERATE_RATE_LIMIT = f"{settings.RATE_LIMIT_GENERATE}/minute"


# ============================================
# REQUEST VALIDATORS
# ============================================

async def validate_json_size(request: Request):
    """
    Rejects oversized bodies before parsing (masks / levels can be large).
    """
    content_length = request.headers.get("content-length")

    if content_length and int(content_length) > settings.MAX_REQUEST_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Request too large"
        )


# ============================================
# SECURITY HEADERS MIDDLEWARE
# ============================================

async def add_security_headers(request: Request, call_next: Callable):
    """Adds security headers to every response."""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response
