"""
Database Configuration Module

SQLAlchemy 2.0 setup for the entity store and the session store.

We use SYNCHRONOUS SQLAlchemy. FastAPI runs sync route handlers in its
threadpool, so a slow query never blocks the event loop; the session
middleware offloads its store calls the same way.

Session Management Pattern
==========================
"Session per request":
1. Request arrives → create a new session
2. Use session for all database operations in that request
3. Commit on success, rollback on failure
4. Close session when request ends
"""

from collections.abc import Generator
from datetime import UTC, datetime

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from library_api.config import Settings


def build_engine(settings: Settings) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database URL.

    SQLite needs check_same_thread=False because FastAPI hands the
    connection to threadpool workers; server databases get a sized pool.
    """
    if settings.database_url.startswith("sqlite"):
        return create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )

    return create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,  # Verify connections are alive before using
        echo=settings.debug,  # Log SQL in debug mode
    )


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory bound to one app's engine."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover tables for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Sessions come from the factory create_app() stored on app.state. The
    session is closed when the request ends, even if the handler raised.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def utcnow() -> datetime:
    """Timezone-aware current time, used as the Python-side timestamp default."""
    return datetime.now(UTC)
