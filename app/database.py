"""
Persistence Gateway
Owns the SQLAlchemy engine and session factory, hands out transaction scopes and
maps driver errors onto the domain error taxonomy.
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.exceptions import (
    ConcurrentUpdateError,
    ConflictError,
    PersistenceError,
    ValidationError,
)
from app.db.base import Base

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:"))


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Explicitly constructed database handle.

    One instance is created at process start, stored on ``app.state`` and
    disposed on shutdown. Services receive it and open their own
    transaction scopes.
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        sqlite_busy_timeout: int = 30,
    ):
        self.url = url
        self.is_sqlite = url.lower().startswith("sqlite")

        if self.is_sqlite:
            engine_kwargs = {
                "connect_args": {
                    "check_same_thread": False,  # SQLite multi-thread
                    "timeout": sqlite_busy_timeout,
                },
            }
            if _is_memory_sqlite(url):
                # One shared connection, otherwise every checkout sees an empty database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs = {
                "connect_args": {
                    "connect_timeout": 10,
                    "options": "-c statement_timeout=30000",  # 30s query timeout
                },
                "pool_pre_ping": True,
                "pool_size": pool_size,
                "max_overflow": max_overflow,
                "pool_recycle": pool_recycle,
                "pool_timeout": pool_timeout,
            }

        self.engine = create_engine(url, echo=echo, **engine_kwargs)
        if self.is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    @classmethod
    def from_settings(cls) -> "Database":
        """Build the handle from application settings."""
        return cls(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
            pool_recycle=settings.DATABASE_POOL_RECYCLE,
            sqlite_busy_timeout=settings.SQLITE_BUSY_TIMEOUT,
        )

    @property
    def safe_url(self) -> str:
        """URL without credentials, for logs."""
        return self.url.split("@")[-1] if "@" in self.url else self.url

    # ──────────────────────────── Lifecycle ────────────────────────────

    def create_all(self) -> None:
        """Create all tables registered on the declarative base."""
        import app.models  # noqa: F401  registers every model on Base.metadata

        Base.metadata.create_all(bind=self.engine)
        logger.info("[DB] Database tables initialized")

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def test_connection(self) -> bool:
        """Run ``SELECT 1``; returns False instead of raising."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            return True
        except SQLAlchemyError as e:
            logger.warning(f"[DB] Database connection failed: {e}")
            return False

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()
        logger.info("[DB] Database connections closed")

    # ──────────────────────────── Sessions ────────────────────────────

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session for read-only work; never commits."""
        db = self.SessionLocal()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(str(exc)) from exc
        finally:
            db.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Unit of work: commit on success, roll back everything on failure."""
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise self._integrity_error(exc) from exc
        except StaleDataError as exc:
            db.rollback()
            raise ConcurrentUpdateError() from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"[DB] Transaction failed: {exc}")
            raise PersistenceError(str(exc)) from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @staticmethod
    def _integrity_error(exc: IntegrityError) -> Exception:
        pgcode = getattr(exc.orig, "pgcode", None)
        detail = str(exc.orig).lower()
        if pgcode == PG_UNIQUE_VIOLATION or "unique" in detail:
            return ConflictError("Duplicate entry detected")
        if pgcode == PG_FOREIGN_KEY_VIOLATION or "foreign key" in detail:
            return ValidationError("Invalid reference: related record does not exist")
        return PersistenceError(str(exc.orig))


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the handle stored on the app."""
    return request.app.state.database
