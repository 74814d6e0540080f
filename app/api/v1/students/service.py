from typing import List, Optional, Set, Union

from fastapi import status
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import apply_student_scope, resolve_scope
from app.core.enums import Role
from app.core.exceptions import ServiceError
from app.core.models import Student

from .schemas import StudentResponse, StudentUpsert


async def upsert_student(db: AsyncSession, payload: StudentUpsert) -> StudentResponse:
    """Insert or replace by PRN. Every other column is overwritten, nothing is merged."""
    values = {
        "prn": payload.prn,
        "name": payload.name,
        "email": payload.email or "",
        "mobile": payload.mobile or "",
        "parent_mobile": payload.parent_mobile or "",
        "batch_id": payload.batch_id or None,
    }
    stmt = insert(Student).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Student.prn],
        set_={k: stmt.excluded[k] for k in values if k != "prn"},
    )
    try:
        await db.execute(stmt)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError(
            f"Invalid batch for student {payload.prn}: {payload.batch_id}",
            status.HTTP_409_CONFLICT,
        )
    return StudentResponse(**values)


async def get_student(db: AsyncSession, prn: str) -> Optional[StudentResponse]:
    result = await db.execute(
        select(Student).where(Student.prn == prn).execution_options(populate_existing=True)
    )
    student = result.scalar_one_or_none()
    return StudentResponse.model_validate(student) if student else None


async def delete_student(db: AsyncSession, prn: str) -> bool:
    """Delete a student together with their attendance and follow-ups."""
    result = await db.execute(delete(Student).where(Student.prn == prn))
    await db.commit()
    return result.rowcount > 0


async def list_students(db: AsyncSession, batch_id: Optional[str] = None) -> List[StudentResponse]:
    """Students of one batch, or all students, by name."""
    stmt = select(Student)
    if batch_id:
        stmt = stmt.where(Student.batch_id == batch_id)
    stmt = stmt.order_by(Student.name.asc()).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return [StudentResponse.model_validate(s) for s in result.scalars().all()]


async def list_students_for_role(
    db: AsyncSession,
    teacher_id: Optional[int],
    role: Union[Role, str],
) -> List[StudentResponse]:
    """All students for Admin/Attendance Teacher, assigned batches only for Batch Teacher.

    Ordered by (batch_id, name). An unrecognized role sees nothing.
    """
    scope = resolve_scope(role, teacher_id)
    stmt = apply_student_scope(select(Student), scope)
    stmt = (
        stmt.distinct()
        .order_by(Student.batch_id.asc(), Student.name.asc())
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return [StudentResponse.model_validate(s) for s in result.scalars().all()]


async def existing_prns(db: AsyncSession) -> Set[str]:
    result = await db.execute(select(Student.prn))
    return set(result.scalars().all())


async def count_students(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Student))
    return result.scalar_one()
