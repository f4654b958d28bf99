# main.py
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings
from .controllers import budgets, categories, comments, entries, members, notifications, transfers, users
from .database import build_engine, build_session_factory, init_db
from .errors import AppError, BadRequest, DatabaseError
from .storage import S3Storage

logger = logging.getLogger(__name__)


def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.message},
        headers=headers,
    )


def _db_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return _app_error_handler(request, DatabaseError())


def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    detail = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return JSONResponse(status_code=422, content={"error": BadRequest.kind, "detail": detail})


def create_app(settings: Optional[Settings] = None, storage: Optional[S3Storage] = None) -> FastAPI:
    """Build the API for the given settings (read from the environment by default)."""
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    engine = build_engine(settings)
    init_db(engine, settings)

    app = FastAPI(title="Shared Budget API")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.storage = storage or S3Storage.from_settings(settings)

    # Configure CORS - explicit origins required when allow_credentials=True
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(SQLAlchemyError, _db_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    # Include routers
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(budgets.router, prefix="/api/budgets", tags=["budgets"])
    app.include_router(members.router, prefix="/api/budgets", tags=["members"])
    app.include_router(categories.router, prefix="/api/budgets", tags=["categories"])
    app.include_router(entries.router, prefix="/api/budgets", tags=["entries"])
    app.include_router(comments.router, prefix="/api/budgets", tags=["comments"])
    app.include_router(transfers.router, prefix="/api", tags=["transfers"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])

    logger.info("Budget API ready")
    return app
