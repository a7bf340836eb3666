"""
Database configuration and session management for the Receipt Splitter backend.

Uses SQLAlchemy ORM; PostgreSQL in deployment, SQLite for local runs and tests.
"""

import logging
import os
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from receipt_splitter.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url

# Create database directory if it doesn't exist
if DATABASE_URL.startswith("sqlite:///") and ":memory:" not in DATABASE_URL:
    db_dir = os.path.dirname(DATABASE_URL.replace("sqlite:///", ""))
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir, exist_ok=True)

# Create SQLAlchemy engine
connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(
    DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    connect_args=connect_args,
    pool_pre_ping=True,
)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on."""
    if type(dbapi_conn).__module__.startswith("sqlite3"):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Base class for declarative models
Base = declarative_base()

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """
    Initialize database by creating all tables.
    """
    # Import models to ensure they're registered
    from receipt_splitter.models import receipt, user  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info("Database schema ready")


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database session.
    Use in FastAPI route dependencies.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

