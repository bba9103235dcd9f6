"""Database Connection and Session Management"""

import re
import ssl
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm.exc import StaleDataError
from typing import AsyncGenerator, AsyncIterator

from app.config import settings
from app.core.exceptions import BillingError, ConcurrentModification, PersistenceError


def _normalize_url(url: str) -> tuple[str, dict]:
    """Rewrite a sync Postgres URL for asyncpg and derive connect_args."""
    # Convert postgresql:// to postgresql+asyncpg:// for async support
    url = url.replace("postgresql://", "postgresql+asyncpg://")

    # asyncpg uses ssl=SSLContext or True, not sslmode; strip sslmode from URL (asyncpg#737, SQLAlchemy#6275)
    connect_args = {}
    if re.search(r"[?&]sslmode=(require|required|verify-full)", url, re.I):
        _ssl_ctx = ssl.create_default_context()
        _ssl_ctx.check_hostname = False
        _ssl_ctx.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = _ssl_ctx
        url = re.sub(r"[?&]sslmode=[^&]+", "", url, flags=re.I)
        url = re.sub(r"\?&", "?", url).rstrip("?")
    if "?&" in url:
        url = url.replace("?&", "?")
    return url, connect_args


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    SQLite (aiosqlite) is supported for local development and tests. pysqlite's
    own transaction handling breaks SAVEPOINT, so for SQLite we disable it and
    emit BEGIN ourselves (see SQLAlchemy "Serializable isolation / Savepoints").
    """
    url, connect_args = _normalize_url(url)

    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=echo, future=True)

        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN")

        return engine

    # pool_pre_ping detects stale RDS connections
    return create_async_engine(
        url,
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        echo=echo,
        future=True,
    )


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Create async session factory
AsyncSessionLocal = build_sessionmaker(engine)

# Base class for declarative models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get database session.

    Services commit their own units of work through ``transaction``; this
    dependency only guarantees the session is rolled back and closed.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Scoped unit of work: commit when the body finishes, roll back on any error.

    Example:
        ```python
        async with transaction(db):
            bill = await BillService.lock_bill(db, bill_id)
            bill.status = BillStatus.CLOSED
        ```
    """
    try:
        yield db
        await db.commit()
    except StaleDataError as exc:
        await db.rollback()
        raise ConcurrentModification() from exc
    except BillingError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        raise PersistenceError(str(exc)) from exc
    except BaseException:
        await db.rollback()
        raise


async def init_db() -> None:
    """Initialize database tables (for development only)"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections"""
    await engine.dispose()
