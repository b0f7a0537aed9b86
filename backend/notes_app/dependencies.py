from __future__ import annotations

import asyncio
import math
import time
from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, Request, Security, WebSocket, WebSocketException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from notes_app.config import settings
from notes_app.core.repositories.implementations.supabase.change_feed import SupabaseChangeFeed
from notes_app.core.repositories.implementations.supabase.note_repository import SupabaseNoteRepository
from notes_app.core.repositories.implementations.supabase.profile_repository import (
    SupabaseProfileRepository,
)
from notes_app.core.schemas.auth import AuthUser
from notes_app.core.services.note_service import NoteService
from notes_app.core.services.note_synchronizer import NoteSynchronizer
from notes_app.db.base import create_request_supabase_client
from notes_app.utils.logging import get_logger

logger = get_logger(__name__)

# Use auto_error=False so anonymous viewers can still read public notes
http_bearer = HTTPBearer(auto_error=False)

if TYPE_CHECKING:
    from supabase import Client

    from notes_app.core.repositories.note_repository import NoteRepository
    from notes_app.core.repositories.profile_repository import ProfileRepository


# In-memory rate limiting
_login_attempts: dict[str, list[float]] = {}


def _is_rate_limited(identifier: str) -> bool:
    """Record an attempt and report whether ``identifier`` exceeded the window limit."""
    if not settings.enable_rate_limiting:
        return False
    window_start = time.time() - settings.login_attempt_window
    attempts = [a for a in _login_attempts.get(identifier, []) if a > window_start]
    _login_attempts[identifier] = attempts
    if len(attempts) >= settings.max_login_attempts:
        return True
    attempts.append(time.time())
    return False


def rate_limit_by_ip(request: Request, operation: str = "default") -> None:
    """Reject the request with 429 once the client IP used up its attempts.

    Raises:
        HTTPException: If rate limit is exceeded
    """
    client_ip = request.client.host if request.client else "unknown"
    identifier = f"{operation}:{client_ip}"
    if not _is_rate_limited(identifier):
        return
    logger.warning(f"Rate limited {operation} attempt", extra={"ip": client_ip})

    attempts = _login_attempts.get(identifier, [])
    now = time.time()
    earliest_attempt = min(attempts) if attempts else now
    seconds_until_reset = max(1, math.ceil(settings.login_attempt_window - (now - earliest_attempt)))
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Too many {operation} attempts. Please try again later.",
        headers={
            "Retry-After": str(seconds_until_reset),
            "RateLimit-Limit": str(settings.max_login_attempts),
            "RateLimit-Remaining": "0",
            "RateLimit-Reset": str(seconds_until_reset),
        },
    )


def _bearer_from_header(value: str | None) -> str | None:
    if value and value.lower().startswith("bearer "):
        return value.split(" ", 1)[1].strip() or None
    return None


def get_request_supabase_client(request: Request) -> Client:
    """Create a request-scoped Supabase client and set PostgREST bearer.

    Extracts the Authorization: Bearer <jwt> header if present and configures
    PostgREST to enforce RLS for the user.
    """
    jwt = _bearer_from_header(request.headers.get("authorization"))
    return create_request_supabase_client(jwt)


def get_note_repository(client: Client = Depends(get_request_supabase_client)) -> NoteRepository:
    return SupabaseNoteRepository(client)


def get_profile_repository(client: Client = Depends(get_request_supabase_client)) -> ProfileRepository:
    return SupabaseProfileRepository(client)


def get_note_service(
    repo: NoteRepository = Depends(get_note_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> NoteService:
    """Get a request-scoped note service instance."""
    return NoteService(repo, profiles)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def authenticate_token(jwt: str) -> AuthUser:
    """Validate a JWT with Supabase auth and return the user it belongs to."""
    if not jwt or len(jwt.split(".")) != 3:
        raise _unauthorized("Invalid token format")
    supabase = create_request_supabase_client(jwt)
    try:
        resp = await asyncio.to_thread(lambda: supabase.auth.get_user(jwt))
    except Exception as err:
        error_msg = str(err).lower()
        logger.warning(
            "JWT validation failed",
            extra={
                "error_type": type(err).__name__,
                "error_summary": error_msg[:100] if error_msg else "Unknown error",
            },
        )
        if "invalid" in error_msg or "expired" in error_msg:
            raise _unauthorized("Token is invalid or expired") from err
        raise _unauthorized("Authentication failed") from err
    user = getattr(resp, "user", None)
    if not user or not getattr(user, "id", None):
        raise _unauthorized("Invalid user data")
    return AuthUser(id=user.id, email=getattr(user, "email", None) or "", role=getattr(user, "role", None))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(http_bearer),
) -> AuthUser:
    """Validate JWT via Supabase and return authenticated user."""
    if not credentials:
        raise _unauthorized("Authentication required")
    return await authenticate_token(credentials.credentials)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(http_bearer),
) -> AuthUser | None:
    """Like ``get_current_user`` but anonymous requests yield None."""
    if not credentials:
        return None
    return await authenticate_token(credentials.credentials)


def _websocket_token(websocket: WebSocket) -> str | None:
    return websocket.query_params.get("access_token") or _bearer_from_header(
        websocket.headers.get("authorization")
    )


async def get_websocket_user(websocket: WebSocket) -> AuthUser:
    """Authenticate a live connection from ``?access_token=`` or the Authorization header."""
    token = _websocket_token(websocket)
    if not token:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="Authentication required")
    try:
        return await authenticate_token(token)
    except HTTPException as err:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason=str(err.detail)) from err


def get_note_synchronizer(websocket: WebSocket) -> NoteSynchronizer:
    """Build a synchronizer whose reads, writes and feed all run as the connected user."""
    token = _websocket_token(websocket) or ""
    client = create_request_supabase_client(token)
    service = NoteService(SupabaseNoteRepository(client), SupabaseProfileRepository(client))
    return NoteSynchronizer(service, SupabaseChangeFeed(token))


def get_auth_service(client: Client = Depends(get_request_supabase_client)):
    """Get a request-scoped auth service instance."""
    from notes_app.core.services.auth_service import AuthService
    return AuthService(client)
