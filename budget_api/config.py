# config.py
"""Application settings, read once from the environment at process start."""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv


DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",  # Local development
    "http://localhost:3000",  # Alternative local dev
)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Explicit configuration handed to `create_app` and injected from there."""

    database_url: str
    db_schema: Optional[str] = None
    jwt_secret: Optional[str] = None
    jwt_audience: Optional[str] = "authenticated"
    jwt_algorithms: Tuple[str, ...] = ("HS256",)
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS
    s3_bucket: Optional[str] = None
    s3_region: Optional[str] = None
    s3_endpoint: Optional[str] = None
    s3_public_url: Optional[str] = None
    max_attachment_bytes: int = 5 * 1024 * 1024
    cleanup_entry_days: int = 1
    cleanup_notification_days: int = 30
    log_level: str = "INFO"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @classmethod
    def from_env(cls) -> "Settings":
        # Load environment variables from the .env file
        load_dotenv()

        database_url = os.getenv("DATABASE_URL")
        if not database_url:
            raise RuntimeError(
                "DATABASE_URL environment variable is not set. "
                "Please set it in your .env file or environment."
            )

        schema = os.getenv("DB_SCHEMA")
        if schema is None and not database_url.startswith("sqlite"):
            schema = "budget_v3"

        origins = os.getenv("CORS_ORIGINS")
        cors_origins = (
            tuple(o.strip() for o in origins.split(",") if o.strip())
            if origins else DEFAULT_CORS_ORIGINS
        )

        return cls(
            database_url=database_url,
            db_schema=schema or None,
            jwt_secret=os.getenv("SUPABASE_JWT_SECRET") or os.getenv("JWT_SECRET"),
            jwt_audience=os.getenv("JWT_AUDIENCE", "authenticated") or None,
            cors_origins=cors_origins,
            s3_bucket=os.getenv("S3_BUCKET"),
            s3_region=os.getenv("S3_REGION"),
            s3_endpoint=os.getenv("S3_ENDPOINT"),
            s3_public_url=os.getenv("S3_PUBLIC_URL"),
            max_attachment_bytes=_int_env("MAX_ATTACHMENT_BYTES", 5 * 1024 * 1024),
            cleanup_entry_days=_int_env("CLEANUP_ENTRY_DAYS", 1),
            cleanup_notification_days=_int_env("CLEANUP_NOTIFICATION_DAYS", 30),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
