from __future__ import annotations

import logging
import sys

from notes_app.config import settings


def setup_logging() -> None:
    """Configure root logging for the service."""

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout
    )

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    # PostgREST and realtime clients log every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("realtime").setLevel(logging.WARNING)

    logging.info("Logging configured", extra={"level": settings.log_level})


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
