"""
Database Connection
SQLite by default (file or in-memory), PostgreSQL through DATABASE_URL
"""
import logging
import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from rxscan.config import settings
from rxscan.database.models import Base

logger = logging.getLogger(__name__)


def normalize_database_url(database_url: str) -> str:
    # Heroku-style URLs use the scheme SQLAlchemy dropped
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Engine for the configured backend; SQLite shares one connection across threads"""
    if not database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_POOL_SIZE * 2,
            pool_pre_ping=True,
            echo=echo
        )

    if database_url.startswith("sqlite:///"):
        db_path = database_url[len("sqlite:///"):]
        if db_path and db_path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=echo
    )
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class DatabaseManager:
    """Owns the engine and session factory for the prescription store"""

    def __init__(self):
        self.engine = None
        self.SessionLocal = None

    @property
    def is_initialized(self) -> bool:
        return self.engine is not None

    def init_db(self, database_url: str = None):
        """Connect and create missing tables; a second call is a no-op"""
        if self.is_initialized:
            return

        database_url = normalize_database_url(database_url or settings.DATABASE_URL)
        engine = build_engine(database_url, echo=settings.DATABASE_ECHO)
        Base.metadata.create_all(bind=engine)

        self.engine = engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info(f"Database initialized: {database_url.split('@')[-1]}")

    def get_session(self) -> Session:
        if not self.is_initialized:
            self.init_db()
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Commit on success, roll back and re-raise on error"""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.SessionLocal = None


db_manager = DatabaseManager()


def init_database(database_url: str = None):
    db_manager.init_db(database_url)
