from datetime import date
from typing import List, Optional, Union

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import apply_student_scope, optional_scope
from app.core.enums import Role
from app.core.exceptions import ServiceError
from app.core.models import FollowUp, Student

from .schemas import FollowUpResponse, FollowUpWithStudent


async def add_follow_up(
    db: AsyncSession,
    student_prn: str,
    fu_date: date,
    proof_path: Optional[str] = None,
    remarks: Optional[str] = None,
) -> FollowUpResponse:
    """Append a follow-up. Several per student and day are allowed."""
    follow_up = FollowUp(
        student_prn=student_prn,
        date=fu_date,
        proof_path=proof_path or None,
        remarks=(remarks or "").strip() or None,
    )
    db.add(follow_up)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError(f"Unknown student: {student_prn}", status.HTTP_409_CONFLICT)
    await db.refresh(follow_up)
    return FollowUpResponse.model_validate(follow_up)


async def list_follow_ups(db: AsyncSession, student_prn: str) -> List[FollowUpResponse]:
    """History for one student, newest date first."""
    result = await db.execute(
        select(FollowUp)
        .where(FollowUp.student_prn == student_prn)
        .order_by(FollowUp.date.desc(), FollowUp.id.desc())
    )
    return [FollowUpResponse.model_validate(f) for f in result.scalars().all()]


async def list_follow_ups_by_date(
    db: AsyncSession,
    fu_date: date,
    teacher_id: Optional[int] = None,
    role: Optional[Union[Role, str]] = None,
) -> List[FollowUpWithStudent]:
    stmt = (
        select(FollowUp, Student.name, Student.batch_id)
        .join(Student, Student.prn == FollowUp.student_prn)
        .where(FollowUp.date == fu_date)
    )
    stmt = apply_student_scope(stmt, optional_scope(role, teacher_id))
    stmt = stmt.order_by(Student.batch_id.asc(), Student.name.asc(), FollowUp.id.asc())
    result = await db.execute(stmt)
    return [
        FollowUpWithStudent(
            **FollowUpResponse.model_validate(f).model_dump(),
            name=name,
            batch_id=batch_id,
        )
        for f, name, batch_id in result.all()
    ]
