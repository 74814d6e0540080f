from typing import List, Optional

from fastapi import status
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.core.models import Batch, Student

from .schemas import BatchResponse, BatchWithCount


async def upsert_batch(db: AsyncSession, batch_id: str, batch_name: str) -> BatchResponse:
    """Insert or replace by batch_id.

    Uses ON CONFLICT DO UPDATE rather than SQLite's REPLACE: REPLACE deletes the old row
    first, which would fire ON DELETE SET NULL on the batch's students.
    """
    batch_id = (batch_id or "").strip()
    if not batch_id:
        raise ServiceError("Batch ID is required", status.HTTP_400_BAD_REQUEST)
    batch_name = (batch_name or "").strip() or batch_id

    stmt = insert(Batch).values(batch_id=batch_id, batch_name=batch_name)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Batch.batch_id],
        set_={"batch_name": stmt.excluded.batch_name},
    )
    try:
        await db.execute(stmt)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError(f"Could not save batch {batch_id}", status.HTTP_409_CONFLICT)
    return BatchResponse(batch_id=batch_id, batch_name=batch_name)


async def get_batch(db: AsyncSession, batch_id: str) -> Optional[BatchResponse]:
    result = await db.execute(
        select(Batch).where(Batch.batch_id == batch_id).execution_options(populate_existing=True)
    )
    batch = result.scalar_one_or_none()
    return BatchResponse.model_validate(batch) if batch else None


async def delete_batch(db: AsyncSession, batch_id: str) -> bool:
    """Delete a batch. Its students stay, with batch_id set to NULL; its assignments go."""
    result = await db.execute(delete(Batch).where(Batch.batch_id == batch_id))
    await db.commit()
    return result.rowcount > 0


async def list_batches(db: AsyncSession) -> List[BatchResponse]:
    result = await db.execute(
        select(Batch).order_by(Batch.batch_name.asc()).execution_options(populate_existing=True)
    )
    return [BatchResponse.model_validate(b) for b in result.scalars().all()]


async def list_batches_with_counts(db: AsyncSession) -> List[BatchWithCount]:
    stmt = (
        select(Batch.batch_id, Batch.batch_name, func.count(Student.prn))
        .outerjoin(Student, Student.batch_id == Batch.batch_id)
        .group_by(Batch.batch_id, Batch.batch_name)
        .order_by(Batch.batch_name.asc())
    )
    result = await db.execute(stmt)
    return [
        BatchWithCount(batch_id=batch_id, batch_name=batch_name, student_count=count)
        for batch_id, batch_name, count in result.all()
    ]
