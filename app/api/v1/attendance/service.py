"""Attendance marking and day views with role-based visibility."""

import logging
from datetime import date, datetime
from typing import List, Optional, Union

from fastapi import status
from sqlalchemy import and_, distinct, func, or_, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.students.schemas import StudentResponse
from app.auth.rbac import apply_student_scope, optional_scope, resolve_scope
from app.core.enums import AttendanceStatus, Role
from app.core.exceptions import ServiceError
from app.core.models import AttendanceRecord, Batch, Student

from .schemas import (
    AbsentStudent,
    AttendanceRecordResponse,
    AttendanceResponse,
    AttendanceSummary,
    DatabaseStats,
)

logger = logging.getLogger(__name__)

RoleArg = Optional[Union[Role, str]]


def _status_value(value: Union[AttendanceStatus, str]) -> str:
    try:
        return AttendanceStatus(value).value
    except ValueError:
        raise ServiceError(f"Invalid status: {value}", status.HTTP_400_BAD_REQUEST)


# ----- Marking -----
async def mark_attendance(
    db: AsyncSession,
    prn: str,
    att_date: date,
    att_status: Union[AttendanceStatus, str],
    updated_at: Optional[datetime] = None,
) -> AttendanceResponse:
    """Insert or replace the record for (prn, date). The last call for a day wins."""
    status_value = _status_value(att_status)
    if updated_at is None:
        updated_at = datetime.utcnow()

    stmt = insert(AttendanceRecord).values(
        student_prn=prn,
        date=att_date,
        status=status_value,
        updated_at=updated_at,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[AttendanceRecord.student_prn, AttendanceRecord.date],
        set_={"status": stmt.excluded.status, "updated_at": stmt.excluded.updated_at},
    )
    try:
        await db.execute(stmt)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError(f"Unknown student: {prn}", status.HTTP_409_CONFLICT)

    result = await db.execute(
        select(AttendanceRecord)
        .where(AttendanceRecord.student_prn == prn, AttendanceRecord.date == att_date)
        .execution_options(populate_existing=True)
    )
    return AttendanceResponse.model_validate(result.scalar_one())


# ----- Day views -----
async def get_attendance_by_date(
    db: AsyncSession,
    att_date: date,
    teacher_id: Optional[int] = None,
    role: RoleArg = None,
) -> List[AttendanceRecordResponse]:
    """Marked records for a day with student name and batch. Admin: all; Batch Teacher: assigned."""
    stmt = (
        select(AttendanceRecord, Student.name, Student.batch_id)
        .join(Student, Student.prn == AttendanceRecord.student_prn)
        .where(AttendanceRecord.date == att_date)
    )
    stmt = apply_student_scope(stmt, optional_scope(role, teacher_id))
    stmt = stmt.order_by(Student.batch_id.asc(), Student.name.asc()).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return [
        AttendanceRecordResponse(
            student_prn=rec.student_prn,
            date=rec.date,
            status=rec.status,
            updated_at=rec.updated_at,
            name=name,
            batch_id=batch_id,
        )
        for rec, name, batch_id in result.all()
    ]


async def _count_marked(db: AsyncSession, att_date: date, status_value: str, scope) -> int:
    stmt = (
        select(func.count(distinct(AttendanceRecord.student_prn)))
        .select_from(AttendanceRecord)
        .join(Student, Student.prn == AttendanceRecord.student_prn)
        .where(AttendanceRecord.date == att_date, AttendanceRecord.status == status_value)
    )
    result = await db.execute(apply_student_scope(stmt, scope))
    return result.scalar_one() or 0


async def summary_for_date(
    db: AsyncSession,
    att_date: date,
    teacher_id: Optional[int] = None,
    role: RoleArg = None,
) -> AttendanceSummary:
    """Total/present/absent for a day. Never raises: on failure it logs and reports zeros."""
    try:
        scope = optional_scope(role, teacher_id)
        total_stmt = apply_student_scope(
            select(func.count(distinct(Student.prn))).select_from(Student), scope
        )
        total = (await db.execute(total_stmt)).scalar_one() or 0
        present = await _count_marked(db, att_date, AttendanceStatus.PRESENT.value, scope)
        absent = await _count_marked(db, att_date, AttendanceStatus.ABSENT.value, scope)
    except Exception:
        logger.exception(
            "Attendance summary failed for date=%s teacher_id=%s role=%s", att_date, teacher_id, role
        )
        return AttendanceSummary()
    return AttendanceSummary(total=total, present=present, absent=absent)


# ----- Absent students -----
def _absent_or_unmarked(att_date: date):
    """Students joined to their record for the day, keeping those Absent or with no record."""
    return (
        select(Student, AttendanceRecord.status)
        .outerjoin(
            AttendanceRecord,
            and_(AttendanceRecord.student_prn == Student.prn, AttendanceRecord.date == att_date),
        )
        .where(
            or_(
                AttendanceRecord.status == AttendanceStatus.ABSENT.value,
                AttendanceRecord.status.is_(None),
            )
        )
    )


def _to_absent(rows) -> List[AbsentStudent]:
    out = []
    for student, status_value in rows:
        base = StudentResponse.model_validate(student)
        out.append(AbsentStudent(**base.model_dump(), status=status_value))
    return out


async def list_absent(
    db: AsyncSession,
    att_date: date,
    batch_id: str,
    teacher_id: Optional[int] = None,
    role: RoleArg = None,
) -> List[AbsentStudent]:
    """Students of a batch who are Absent on the day or were not marked at all, by name."""
    stmt = _absent_or_unmarked(att_date).where(Student.batch_id == batch_id)
    stmt = apply_student_scope(stmt, optional_scope(role, teacher_id))
    stmt = stmt.order_by(Student.name.asc()).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return _to_absent(result.all())


async def list_absent_for_role(
    db: AsyncSession,
    att_date: date,
    teacher_id: Optional[int],
    role: Union[Role, str],
) -> List[AbsentStudent]:
    """Absent-or-unmarked students across everything the caller can see."""
    stmt = apply_student_scope(_absent_or_unmarked(att_date), resolve_scope(role, teacher_id))
    stmt = stmt.order_by(Student.batch_id.asc(), Student.name.asc()).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return _to_absent(result.all())


async def database_stats(db: AsyncSession) -> DatabaseStats:
    students = (await db.execute(select(func.count()).select_from(Student))).scalar_one()
    attendance = (await db.execute(select(func.count()).select_from(AttendanceRecord))).scalar_one()
    batches = (await db.execute(select(func.count()).select_from(Batch))).scalar_one()
    return DatabaseStats(students=students, attendance=attendance, batches=batches)
