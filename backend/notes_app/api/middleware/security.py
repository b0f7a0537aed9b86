from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from notes_app.config import settings
from notes_app.utils.logging import get_logger

if TYPE_CHECKING:
    from fastapi import Request

logger = get_logger(__name__)

# Rendered notes are served as HTML fragments; images may come from anywhere
CSP_POLICY = (
    "default-src 'self'; "
    "script-src 'self'; "
    "style-src 'self' 'unsafe-inline'; "
    "img-src 'self' data: https:; "
    "connect-src 'self' https://*.supabase.co wss://*.supabase.co; "
    "frame-ancestors 'none';"
)


class SecurityMiddleware(BaseHTTPMiddleware):
    """Adds security headers and audits auth endpoint access."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = CSP_POLICY
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

        # Private notes must never be cached by intermediaries
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"

        if request.url.path.startswith(f"{settings.api_prefix}/auth"):
            logger.info(
                "Auth endpoint accessed",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "ip": request.client.host if request.client else "unknown",
                },
            )

        return response
