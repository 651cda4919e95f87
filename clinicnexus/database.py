# clinicnexus/database.py
import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from .config import get_settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False):
    """Create an engine for the given URL (SQLite needs cross-thread access under FastAPI)."""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(
        database_url,
        pool_pre_ping=True,
        echo=echo,
        connect_args=connect_args,
    )


# Create engine
engine = build_engine(get_settings().database_url, echo=get_settings().database_echo)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


# Dependency to get database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction_scope(session_factory: Optional[Callable[[], Session]] = None) -> Iterator[Session]:
    """
    Run a unit of work on one session.

    Commits when the block exits normally, rolls back when it raises, and
    always closes the session. Rollback failures are logged and swallowed so
    the original error is the one that propagates.
    """
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        try:
            db.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Rollback error: {rollback_error}")
        raise
    finally:
        db.close()


def check_connection(db: Session) -> bool:
    """Run a trivial query to confirm the store is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False


def create_tables(bind=None):
    """Create all database tables - MUST import models first!"""
    # Import models to register them with Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created successfully")


def drop_tables(bind=None):
    """Drop all database tables"""
    Base.metadata.drop_all(bind=bind or engine)
    logger.info("Database tables dropped successfully")
