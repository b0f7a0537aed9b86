"""Map note errors onto HTTP responses."""
from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import status
from fastapi.responses import JSONResponse

from notes_app.core.errors import (
    AuthorizationError,
    FetchError,
    NetworkError,
    NoteAppError,
    RejectedError,
    ValidationError,
)
from notes_app.utils.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = get_logger(__name__)

STATUS_BY_ERROR: dict[type[NoteAppError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    RejectedError: status.HTTP_403_FORBIDDEN,
    FetchError: status.HTTP_404_NOT_FOUND,
    NetworkError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(err: NoteAppError) -> int:
    for error_type, code in STATUS_BY_ERROR.items():
        if isinstance(err, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NoteAppError)
    async def _note_error_handler(request: Request, exc: NoteAppError):
        code = status_for(exc)
        logger.info(
            "Note request failed",
            extra={"path": request.url.path, "status": code, "error_type": type(exc).__name__},
        )
        return JSONResponse(status_code=code, content={"detail": exc.user_message})
