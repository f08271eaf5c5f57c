"""
Database connection setup.
Synchronous SQLAlchemy engine: one session per request, one commit per operation.
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base
from sqlalchemy.orm import sessionmaker

from vaccination_portal.config import settings
from vaccination_portal.errors import StoreError

logger = logging.getLogger(__name__)

# SQLite (local runs) needs the connection to be shareable across the threadpool
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a database session and closes it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit(db: Session) -> None:
    """
    Commits the current transaction.
    IntegrityError is re-raised untouched so callers can turn it into a conflict;
    any other database failure rolls back and becomes a StoreError.
    """
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Database commit failed: %s", exc)
        raise StoreError("The database could not save the changes.") from exc
