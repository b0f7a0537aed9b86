from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from notes_app.api.v1.schemas.auth import AuthResponse
from notes_app.dependencies import rate_limit_by_ip
from notes_app.utils.logging import get_logger
from notes_app.utils.validation import validate_password_strength

if TYPE_CHECKING:
    from fastapi import Request

    from notes_app.api.v1.schemas.auth import SignInRequest, SignUpRequest
    from notes_app.core.schemas.auth import AuthUser


logger = get_logger(__name__)

# (substring of provider error, message shown to the user)
SIGN_UP_ERRORS = (
    ("signup disabled", "Signups are disabled. Please request an invite."),
    ("signups not allowed", "Signups are disabled. Please request an invite."),
    ("already registered", "An account with this email already exists"),
    ("already exists", "An account with this email already exists"),
    ("invalid email", "Invalid email format"),
    ("weak password", "Password does not meet security requirements"),
)
SIGN_IN_ERRORS = (
    ("invalid login credentials", "Invalid email or password"),
    ("email not confirmed", "Please confirm your email address before signing in"),
    ("too many requests", "Too many signin attempts. Please try again later."),
)
REFRESH_ERRORS = (
    ("invalid", "Invalid or expired refresh token"),
    ("expired", "Invalid or expired refresh token"),
)


def _user_message(err: Exception, table: tuple[tuple[str, str], ...], fallback: str) -> str:
    error_msg = str(err).lower()
    for phrase, message in table:
        if phrase in error_msg:
            return message
    return fallback


class AuthService:
    """Email/password authentication against Supabase auth."""

    def __init__(self, supabase_client: Any):
        self.supabase = supabase_client

    async def sign_up(self, request: Request, payload: SignUpRequest) -> AuthResponse:
        rate_limit_by_ip(request, "signup")

        is_valid_password, password_error = validate_password_strength(payload.password)
        if not is_valid_password:
            raise ValueError(password_error)

        email = payload.email.lower().strip()
        credentials: dict[str, Any] = {"email": email, "password": payload.password}
        full_name = (payload.full_name or "").strip()
        if full_name:
            # handle_new_user copies this into profiles.full_name
            credentials["options"] = {"data": {"full_name": full_name}}

        try:
            resp = await asyncio.to_thread(lambda: self.supabase.auth.sign_up(credentials))
        except Exception as err:
            self._log_failure("Sign up failed", err, email=email)
            raise ValueError(
                _user_message(err, SIGN_UP_ERRORS, "Failed to create account. Please try again.")
            ) from err

        if not resp.user or not getattr(resp, "session", None):
            raise ValueError("Account created but session not established. Please confirm your email or sign in.")

        logger.info("User signed up", extra={"user_id": str(resp.user.id)})
        return self._to_response(resp)

    async def sign_in(self, request: Request, payload: SignInRequest) -> AuthResponse:
        rate_limit_by_ip(request, "signin")

        email = payload.email.lower().strip()
        if not email or not payload.password:
            raise ValueError("Email and password are required")

        try:
            resp = await asyncio.to_thread(
                lambda: self.supabase.auth.sign_in_with_password({"email": email, "password": payload.password})
            )
        except Exception as err:
            self._log_failure("Sign in failed", err, email=email)
            raise ValueError(
                _user_message(err, SIGN_IN_ERRORS, "Authentication service error. Please try again.")
            ) from err

        if not resp.user or not getattr(resp, "session", None):
            raise ValueError("Invalid email or password")

        logger.info("User signed in", extra={"user_id": str(resp.user.id)})
        return self._to_response(resp)

    async def sign_out(self, current_user: AuthUser) -> dict[str, str]:
        """Sign out; the caller's live sessions end when their sockets close."""
        try:
            await asyncio.to_thread(lambda: self.supabase.auth.sign_out())
            logger.info("User signed out", extra={"user_id": str(current_user.id)})
        except Exception as err:
            logger.warning("Sign out failed", extra={"error": str(err)[:100], "user_id": str(current_user.id)})
        return {"message": "Signed out successfully"}

    async def refresh_token(self, refresh_token: str) -> AuthResponse:
        if not refresh_token:
            raise ValueError("Refresh token is required")
        try:
            resp = await asyncio.to_thread(lambda: self.supabase.auth.refresh_session(refresh_token))
        except Exception as err:
            self._log_failure("Token refresh failed", err)
            raise ValueError(_user_message(err, REFRESH_ERRORS, "Failed to refresh token")) from err

        if not resp.user or not getattr(resp, "session", None):
            raise ValueError("Invalid refresh token")
        return self._to_response(resp)

    @staticmethod
    def _log_failure(message: str, err: Exception, **context: Any) -> None:
        error_msg = str(err).lower()
        logger.warning(
            message,
            extra={
                **context,
                "error_type": type(err).__name__,
                "error_summary": error_msg[:100] if error_msg else "Unknown error",
            },
        )

    @staticmethod
    def _to_response(resp: Any) -> AuthResponse:
        return AuthResponse(
            access_token=resp.session.access_token,
            token_type="bearer",
            expires_in=resp.session.expires_in,
            refresh_token=resp.session.refresh_token,
            user={"id": str(resp.user.id), "email": resp.user.email or ""},
        )
