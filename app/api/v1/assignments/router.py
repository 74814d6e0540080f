from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.batches.schemas import BatchResponse
from app.auth.dependencies import get_current_user
from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser
from app.core.enums import Role
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import TeacherAssignmentCreate, TeacherAssignmentResponse
from . import service

router = APIRouter(prefix="/api/v1/assignments", tags=["assignments"])


@router.post(
    "",
    response_model=TeacherAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def assign_teacher(
    payload: TeacherAssignmentCreate,
    db: AsyncSession = Depends(get_db),
):
    """Link a teacher to a batch. Repeating an existing link succeeds."""
    try:
        return await service.assign_teacher_to_batch(db, payload.teacher_id, payload.batch_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def remove_teacher(
    teacher_id: int = Query(...),
    batch_id: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    if not await service.remove_teacher_from_batch(db, teacher_id, batch_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")


@router.get("/me", response_model=List[BatchResponse])
async def my_batches(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Batches assigned to the logged-in teacher."""
    return await service.get_teacher_assignments(db, current_user.id)
