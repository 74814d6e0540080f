from typing import List

from fastapi import status
from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.batches.schemas import BatchResponse
from app.api.v1.users.schemas import UserResponse
from app.auth.models import User
from app.core.exceptions import ServiceError
from app.core.models import Batch, TeacherAssignment

from .schemas import TeacherAssignmentResponse


async def assign_teacher_to_batch(db: AsyncSession, teacher_id: int, batch_id: str) -> TeacherAssignmentResponse:
    """Link a teacher to a batch. Linking an existing pair again is a no-op."""
    stmt = (
        insert(TeacherAssignment)
        .values(teacher_id=teacher_id, batch_id=batch_id)
        .on_conflict_do_nothing(index_elements=[TeacherAssignment.teacher_id, TeacherAssignment.batch_id])
    )
    try:
        await db.execute(stmt)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Invalid teacher or batch", status.HTTP_409_CONFLICT)
    return TeacherAssignmentResponse(teacher_id=teacher_id, batch_id=batch_id)


async def remove_teacher_from_batch(db: AsyncSession, teacher_id: int, batch_id: str) -> bool:
    result = await db.execute(
        delete(TeacherAssignment).where(
            TeacherAssignment.teacher_id == teacher_id,
            TeacherAssignment.batch_id == batch_id,
        )
    )
    await db.commit()
    return result.rowcount > 0


async def list_teacher_batches(db: AsyncSession, teacher_id: int) -> List[str]:
    """Batch ids linked to a teacher."""
    result = await db.execute(
        select(TeacherAssignment.batch_id)
        .where(TeacherAssignment.teacher_id == teacher_id)
        .order_by(TeacherAssignment.batch_id.asc())
    )
    return list(result.scalars().all())


async def get_teacher_assignments(db: AsyncSession, teacher_id: int) -> List[BatchResponse]:
    """Batches linked to a teacher, by name."""
    result = await db.execute(
        select(Batch)
        .join(TeacherAssignment, TeacherAssignment.batch_id == Batch.batch_id)
        .where(TeacherAssignment.teacher_id == teacher_id)
        .order_by(Batch.batch_name.asc())
        .execution_options(populate_existing=True)
    )
    return [BatchResponse.model_validate(b) for b in result.scalars().all()]


async def get_batch_assignments(db: AsyncSession, batch_id: str) -> List[UserResponse]:
    """Teachers linked to a batch."""
    result = await db.execute(
        select(User)
        .join(TeacherAssignment, TeacherAssignment.teacher_id == User.id)
        .where(TeacherAssignment.batch_id == batch_id)
        .order_by(User.username.asc())
    )
    return [UserResponse.model_validate(u) for u in result.scalars().all()]
