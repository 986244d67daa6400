"""
Database connection and session management.
Supports PostgreSQL (pooled) and SQLite (single static connection,
WAL journal, foreign keys on) backends.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from typing import Generator
import logging
import os

from tripplanner.core.config import settings
from tripplanner.db.models import Base

logger = logging.getLogger(__name__)

_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def _resolve_sqlite_url(database_url: str) -> str:
    """Resolve ``sqlite:///./file.db`` relative to the backend directory."""
    db_path = database_url.replace("sqlite:///", "", 1)
    if db_path.startswith("./"):
        return f"sqlite:///{os.path.join(_BACKEND_DIR, db_path[2:])}"
    return database_url


def create_db_engine(database_url: str) -> Engine:
    """Build an engine for ``database_url`` with backend-specific tuning."""
    if database_url.startswith("sqlite"):
        engine = create_engine(
            _resolve_sqlite_url(database_url),
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
        in_memory = ":memory:" in database_url or database_url.rstrip("/") == "sqlite:"

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            if not in_memory:
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    # PostgreSQL: production pooling
    engine = create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_recycle=settings.database_pool_recycle,
        pool_pre_ping=settings.database_pool_pre_ping,
        pool_timeout=30,
        echo=False,
        connect_args={"connect_timeout": 10},
    )

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_conn, connection_record):
        """Tag connections so they are identifiable in pg_stat_activity."""
        cursor = dbapi_conn.cursor()
        cursor.execute("SET application_name = 'trip-planner'")
        cursor.close()

    return engine


engine = create_db_engine(settings.database_url)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """Dependency injection for a request-scoped database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None) -> None:
    """Create all tables (idempotent)."""
    logger.info("Initializing database schema...")
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database schema initialized")
