# dependencies.py
"""Centralized dependencies for FastAPI application."""

from fastapi import Request

from .config import Settings
from .errors import InternalError
from .storage import S3Storage


def get_db(request: Request):
    """Database session dependency.

    Yields a database session and ensures it's closed after use.
    Usage: db: Session = Depends(get_db)
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> S3Storage:
    """Attachment storage client built once by `create_app`."""
    storage = request.app.state.storage
    if storage is None:
        raise InternalError("Attachment storage is not configured")
    return storage
