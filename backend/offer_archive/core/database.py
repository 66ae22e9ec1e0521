"""
Database utilities and connection management.

WHAT: SQLAlchemy engine and session handling for the document store
WHY: Give every batch commit its own transaction with commit/rollback semantics
HOW: SQLAlchemy sync engine, WAL mode on SQLite files, session context manager
"""

from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, text, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from ..utils.logger import get_logger

logger = get_logger(__name__)

# Base for models
Base = declarative_base()


def _is_memory_sqlite(url) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


class Database:
    """
    Engine plus session factory for one database URL.

    WHAT: Owns the engine and hands out transactional sessions
    WHY: Constructed once at process start and injected where needed
    HOW: In-memory SQLite shares a single connection so every session sees the same data
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        parsed = make_url(url)
        engine_kwargs = {"echo": echo, "future": True}

        if parsed.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False}  # Allow multi-threaded access
            if _is_memory_sqlite(parsed):
                engine_kwargs["poolclass"] = StaticPool
            else:
                # Ensure data directory exists
                data_dir = Path(parsed.database).parent
                if not data_dir.exists():
                    data_dir.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(url, **engine_kwargs)

        if parsed.get_backend_name() == "sqlite":
            event.listen(self.engine, "connect", _set_sqlite_pragma)

        self.SessionLocal = sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
            autocommit=False
        )

    @contextmanager
    def session(self):
        """
        Context manager for database session.

        Usage:
            with database.session() as db:
                # use db session
                pass

        Yields:
            Session: SQLAlchemy session, committed on success, rolled back on error
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init(self):
        """Create all tables."""
        from . import models  # noqa: F401  registers tables on Base
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Database initialized ({self.engine.url.render_as_string(hide_password=True)})")

    def ping(self) -> dict:
        """
        Check database connectivity.

        Returns:
            Dict with status and info
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(text("SELECT 1"))
                result.fetchone()

            return {
                "available": True,
                "url": self.engine.url.render_as_string(hide_password=True),
                "error": None
            }
        except Exception as e:
            logger.error(f"Database ping failed: {e}")
            return {
                "available": False,
                "url": self.engine.url.render_as_string(hide_password=True),
                "error": str(e)
            }

    def close(self):
        """Close database connections."""
        self.engine.dispose()
        logger.info("Database connections closed")


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable WAL mode for better concurrency."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()
