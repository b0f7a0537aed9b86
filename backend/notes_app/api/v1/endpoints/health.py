from __future__ import annotations

import asyncio

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from notes_app.config import settings
from notes_app.db.base import create_request_supabase_client
from notes_app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

SERVICE_NAME = "markdown-notes-api"
SERVICE_VERSION = "0.1.0"


@router.get("/")
async def health_check():
    """Liveness probe."""
    return {"status": "healthy", "service": SERVICE_NAME, "version": SERVICE_VERSION}


@router.get("/ready")
async def readiness_check():
    """Readiness probe: the notes table answers an anonymous query."""
    try:
        client = create_request_supabase_client()
        await asyncio.to_thread(
            lambda: client.table(settings.notes_table).select("id").eq("is_public", True).limit(1).execute()
        )
    except Exception as err:
        logger.warning("Readiness check failed", extra={"error_type": type(err).__name__})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "database": "error"},
        )
    return {"status": "ready", "database": "connected", "api_prefix": settings.api_prefix}
