# database.py
"""Database configuration and session management."""

import logging

from sqlalchemy import NullPool, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import Settings

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine described by `settings`.

    PostgreSQL runs without a pool (one connection per Lambda invocation) and
    maps the unqualified model tables into `settings.db_schema`. SQLite is used
    for local runs and tests and gets foreign key enforcement switched on.
    """
    logger.info("Connecting to database...")

    if settings.is_sqlite:
        engine = create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False},
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    engine = create_engine(
        settings.database_url,
        client_encoding="utf8",
        poolclass=NullPool,
    )
    if settings.db_schema:
        engine = engine.execution_options(
            schema_translate_map={None: settings.db_schema}
        )
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    # Create a configured "SessionLocal" class
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine, settings: Settings) -> None:
    """Create the schema (PostgreSQL) and all tables if they are missing."""
    # Register every mapped class on Base.metadata
    from . import models  # noqa: F401

    if settings.db_schema and not settings.is_sqlite:
        with engine.connect() as connection:
            connection.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{settings.db_schema}"'))
            connection.commit()

    Base.metadata.create_all(bind=engine)
