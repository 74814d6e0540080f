from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.assignments import service as assignment_service
from app.api.v1.batches.schemas import BatchResponse
from app.auth.rbac import require_roles
from app.core.enums import Role
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import UserCreate, UserResponse
from . import service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    try:
        return await service.create_user(db, payload.username, payload.password, payload.role)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/teachers",
    response_model=List[UserResponse],
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def list_teachers(db: AsyncSession = Depends(get_db)):
    return await service.list_teachers(db)


@router.get(
    "/{user_id}/batches",
    response_model=List[BatchResponse],
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def get_teacher_batches(user_id: int, db: AsyncSession = Depends(get_db)):
    """Batches assigned to a teacher."""
    if await service.get_user(db, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return await assignment_service.get_teacher_assignments(db, user_id)
