"""Async SQLAlchemy engine for the relational backend.

SQLite files get WAL journaling and a busy timeout on every connection so
that a CLI invocation and a long-running host can share one registry file.
"""

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import Table, event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from roster.db.models import Base

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_MS = 5000


def sqlite_url(path: Path) -> str:
    """Build an aiosqlite URL for a database file."""
    return f"sqlite+aiosqlite:///{path}"


def _configure_sqlite(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
    finally:
        cursor.close()


class Database:
    """Owns the async engine and hands out transactional sessions.

    Either a full URL or a SQLite file path must be given; the URL wins
    when both are present. The file's directory is created on connect().
    """

    def __init__(
        self, database_url: str | None = None, database_path: Path | None = None
    ):
        self._path: Path | None = None
        if database_url:
            self._url = database_url
        elif database_path:
            self._path = database_path
            self._url = sqlite_url(database_path)
        else:
            raise ValueError("Either database_url or database_path must be provided")

        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_sqlite(self) -> bool:
        return make_url(self._url).get_backend_name() == "sqlite"

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    async def connect(self) -> None:
        """Create the engine (and the SQLite directory). Idempotent."""
        if self._engine is not None:
            return

        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(self._url, pool_pre_ping=True)
        if self.is_sqlite:
            event.listen(engine.sync_engine, "connect", _configure_sqlite)

        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        logger.debug(
            "database_connected",
            extra={
                "db.url": make_url(self._url).render_as_string(hide_password=True)
            },
        )

    async def create_tables(self, tables: Sequence[Table]) -> None:
        """Create any of the given tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(
                lambda sync_conn: Base.metadata.create_all(
                    sync_conn, tables=list(tables)
                )
            )

    async def disconnect(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.debug("database_disconnected")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session that commits on exit and rolls back on error."""
        if self._sessions is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        async with self._sessions() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
