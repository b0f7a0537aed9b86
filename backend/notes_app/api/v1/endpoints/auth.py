from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from notes_app.api.v1.schemas.auth import (
    AuthResponse,
    RefreshRequest,
    SignInRequest,
    SignUpRequest,
)
from notes_app.core.schemas.auth import AuthUser
from notes_app.dependencies import (
    get_auth_service,
    get_current_user,
)
from notes_app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    responses={
        401: {"description": "Unauthorized"},
        429: {"description": "Too many requests"}
    }
)


async def _call(action: str, coro):
    try:
        return await coro
    except HTTPException:
        raise
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    except Exception as err:
        logger.error(f"Unexpected error during {action}", extra={"error": str(err)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from err


@router.post("/signup", response_model=AuthResponse)
async def sign_up_with_password(
    request: Request,
    payload: SignUpRequest,
    auth_service=Depends(get_auth_service),
):
    """Sign up with email and password."""
    return await _call("signup", auth_service.sign_up(request, payload))


@router.post("/signin", response_model=AuthResponse)
async def sign_in_with_password(
    request: Request,
    payload: SignInRequest,
    auth_service=Depends(get_auth_service),
):
    """Sign in with email and password."""
    return await _call("signin", auth_service.sign_in(request, payload))


@router.post("/signout")
async def sign_out(
    current_user: AuthUser = Depends(get_current_user),
    auth_service=Depends(get_auth_service),
):
    """Sign out the current user."""
    return await auth_service.sign_out(current_user)


@router.post("/refresh", response_model=AuthResponse)
async def refresh_token(
    payload: RefreshRequest,
    auth_service=Depends(get_auth_service),
):
    """Exchange a refresh token for a new session."""
    return await _call("refresh", auth_service.refresh_token(payload.refresh_token))


@router.get("/validate")
async def validate_token(current_user: AuthUser = Depends(get_current_user)):
    """Validate the current user's token and return user info."""
    return {
        "id": str(current_user.id),
        "email": current_user.email,
        "role": current_user.role,
    }
