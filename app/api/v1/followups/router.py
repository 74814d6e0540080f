from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.students import service as student_service
from app.auth.dependencies import get_current_user
from app.auth.rbac import can_view_batch, resolve_scope
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import FollowUpCreate, FollowUpResponse, FollowUpWithStudent
from . import service

router = APIRouter(prefix="/api/v1/followups", tags=["followups"])


async def _ensure_student_visible(db: AsyncSession, current_user: CurrentUser, prn: str) -> None:
    student = await student_service.get_student(db, prn)
    scope = resolve_scope(current_user.role, current_user.id)
    if not student or not await can_view_batch(db, scope, student.batch_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")


@router.post("", response_model=FollowUpResponse, status_code=status.HTTP_201_CREATED)
async def add_follow_up(
    payload: FollowUpCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    await _ensure_student_visible(db, current_user, payload.student_prn)
    try:
        return await service.add_follow_up(
            db, payload.student_prn, payload.date, payload.proof_path, payload.remarks
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/student/{prn}", response_model=List[FollowUpResponse])
async def list_student_follow_ups(
    prn: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    await _ensure_student_visible(db, current_user, prn)
    return await service.list_follow_ups(db, prn)


@router.get("/day", response_model=List[FollowUpWithStudent])
async def list_day_follow_ups(
    fu_date: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.list_follow_ups_by_date(db, fu_date, current_user.id, current_user.role)
