"""Store creation: idempotent init, indexes, fatal failure on unusable storage."""

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from app.api.v1.batches import service as batch_service
from app.core.exceptions import StoreInitError
from app.db.schema import REQUIRED_TABLES, init_db
from app.db.session import create_engine_for


@pytest.mark.asyncio
async def test_init_db_is_idempotent(engine: AsyncEngine, db_session: AsyncSession) -> None:
    await batch_service.upsert_batch(db_session, "X", "Morning")

    await init_db(engine)
    await init_db(engine)

    batches = await batch_service.list_batches(db_session)
    assert [b.batch_id for b in batches] == ["X"]


@pytest.mark.asyncio
async def test_all_tables_and_indexes_created(engine: AsyncEngine) -> None:
    def _inspect(sync_conn):
        insp = inspect(sync_conn)
        indexes = set()
        for table in insp.get_table_names():
            indexes.update(ix["name"] for ix in insp.get_indexes(table))
        return set(insp.get_table_names()), indexes

    async with engine.connect() as conn:
        tables, indexes = await conn.run_sync(_inspect)

    assert set(REQUIRED_TABLES) <= tables
    assert {
        "idx_students_batch",
        "idx_attendance_date",
        "idx_attendance_prn",
        "idx_teacher_assignments",
        "idx_followups_student",
    } <= indexes


@pytest.mark.asyncio
async def test_foreign_keys_enabled(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        result = await conn.execute(text("PRAGMA foreign_keys"))
        assert result.scalar_one() == 1


@pytest.mark.asyncio
async def test_unusable_storage_is_fatal(tmp_path) -> None:
    missing_dir = tmp_path / "does-not-exist" / "nested"
    bad_engine = create_engine_for(f"sqlite+aiosqlite:///{missing_dir}/attendance.db")
    try:
        with pytest.raises(StoreInitError):
            await init_db(bad_engine)
    finally:
        await bad_engine.dispose()
