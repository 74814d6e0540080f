"""Create the attendance store. Idempotent: existing tables and rows are left untouched."""

import asyncio
import logging
from typing import List, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

# Imported for their side effect of registering tables on Base.metadata
from app.auth import models as _auth_models  # noqa: F401
from app.core import models as _core_models  # noqa: F401
from app.core.exceptions import StoreInitError
from app.db.session import Base

logger = logging.getLogger(__name__)

REQUIRED_TABLES: List[str] = [
    "users",
    "batches",
    "students",
    "attendance",
    "teacher_assignments",
    "followups",
]


def _existing_tables(sync_conn) -> List[str]:
    return inspect(sync_conn).get_table_names()


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """Create missing tables and indexes. Raises StoreInitError if the store is unusable."""
    if engine is None:
        from app.db.session import engine as default_engine

        engine = default_engine
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
            tables = await conn.run_sync(_existing_tables)
    except SQLAlchemyError as e:
        logger.error("Attendance store initialization failed: %s", e)
        raise StoreInitError(f"Cannot initialize attendance store: {e}") from e

    missing = [t for t in REQUIRED_TABLES if t not in tables]
    if missing:
        raise StoreInitError(f"Attendance store is missing tables: {', '.join(missing)}")
    logger.info("Database initialized successfully")


if __name__ == "__main__":
    asyncio.run(init_db())
