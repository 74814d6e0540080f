"""Attendance API router."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import can_view_batch, require_roles, resolve_scope
from app.auth.schemas import CurrentUser
from app.core.enums import Role
from app.core.exceptions import ServiceError
from app.db.session import get_db

from . import service
from .schemas import (
    AbsentStudent,
    AttendanceBulkMark,
    AttendanceMark,
    AttendanceRecordResponse,
    AttendanceResponse,
    AttendanceSummary,
    DatabaseStats,
)

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])

_markers = require_roles(Role.ADMIN, Role.ATTENDANCE_TEACHER)


@router.post(
    "/mark",
    response_model=AttendanceResponse,
    dependencies=[Depends(_markers)],
)
async def mark_attendance(
    payload: AttendanceMark,
    db: AsyncSession = Depends(get_db),
):
    """Mark one student for a day. Marking again overwrites."""
    try:
        return await service.mark_attendance(db, payload.prn, payload.date, payload.status, payload.updated_at)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/mark-bulk",
    dependencies=[Depends(_markers)],
)
async def mark_attendance_bulk(
    payload: AttendanceBulkMark,
    db: AsyncSession = Depends(get_db),
):
    count = 0
    try:
        for rec in payload.records:
            await service.mark_attendance(db, rec.prn, payload.date, rec.status)
            count += 1
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"marked": count, "message": f"Attendance marked for {count} students"}


@router.get("/day", response_model=List[AttendanceRecordResponse])
async def get_attendance_day(
    att_date: date = Query(..., alias="date", description="Attendance date"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Marked records for a day. Batch Teachers: assigned batches only."""
    return await service.get_attendance_by_date(db, att_date, current_user.id, current_user.role)


@router.get("/summary", response_model=AttendanceSummary)
async def get_summary(
    att_date: date = Query(..., alias="date", description="Attendance date"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.summary_for_date(db, att_date, current_user.id, current_user.role)


@router.get("/absent", response_model=List[AbsentStudent])
async def get_absent(
    att_date: date = Query(..., alias="date", description="Attendance date"),
    batch_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Absent or unmarked students, for one batch or everything visible."""
    if batch_id:
        scope = resolve_scope(current_user.role, current_user.id)
        if not await can_view_batch(db, scope, batch_id):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Batch not assigned to you")
        return await service.list_absent(db, att_date, batch_id, current_user.id, current_user.role)
    return await service.list_absent_for_role(db, att_date, current_user.id, current_user.role)


@router.get(
    "/stats",
    response_model=DatabaseStats,
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def get_stats(db: AsyncSession = Depends(get_db)):
    return await service.database_stats(db)
