from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from loguru import logger

from app.core.config import DATABASE_URL, SQL_DEBUG

# --- Base (single source of truth) ---
Base = declarative_base()


class Store:
    """
    Owns the engine and session factory for one database.

    Built explicitly and handed to whoever needs it (the app keeps it on
    ``app.state.store``). ``init()`` creates the schema and seeds reference
    data, ``dispose()`` closes pooled connections.
    """

    def __init__(self, database_url: str = DATABASE_URL, sql_debug: bool = SQL_DEBUG):
        self.database_url = database_url
        self.engine: AsyncEngine = create_async_engine(
            database_url,
            echo=False,
            future=True,
            pool_pre_ping=True,
        )
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

        if database_url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # --- SQL query logging ---
        if sql_debug:
            event.listen(self.engine.sync_engine, "before_cursor_execute", _log_statement)

    async def init(self, demo_user_id: str | None = None) -> None:
        from app.core.init_db import init_db

        await init_db(self, demo_user_id=demo_user_id)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _log_statement(conn, cursor, statement, parameters, context, executemany):
    logger.debug(f"SQL: {statement} | params={parameters}")


# --- FastAPI dependency ---
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    store: Store = request.app.state.store
    async with store.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
