from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from app.core.config import settings

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ships with foreign key enforcement off; cascades and SET NULL depend on it.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_memory_url(database_url: str) -> bool:
    return ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite+aiosqlite:")


def create_engine_for(database_url: str) -> AsyncEngine:
    """Build an async engine for the attendance store.

    In-memory URLs share a single connection so every session sees the same database.
    """
    kwargs = {"echo": False, "future": True}
    if _is_memory_url(database_url):
        kwargs["poolclass"] = StaticPool
    engine = create_async_engine(database_url, **kwargs)
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = create_engine_for(settings.database_url)

AsyncSessionLocal = create_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
