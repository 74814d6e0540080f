from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.assignments import service as assignment_service
from app.api.v1.users.schemas import UserResponse
from app.auth.dependencies import get_current_user
from app.auth.rbac import require_roles, resolve_scope, ScopeKind
from app.auth.schemas import CurrentUser
from app.core.enums import Role
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import BatchResponse, BatchUpsert, BatchWithCount
from . import service

router = APIRouter(prefix="/api/v1/batches", tags=["batches"])


@router.get("", response_model=List[BatchWithCount])
async def list_batches(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Batches with student counts. Batch Teachers only get their assigned batches."""
    batches = await service.list_batches_with_counts(db)
    scope = resolve_scope(current_user.role, current_user.id)
    if scope.kind is ScopeKind.ALL:
        return batches
    allowed = set(await assignment_service.list_teacher_batches(db, current_user.id))
    return [b for b in batches if b.batch_id in allowed]


@router.put(
    "",
    response_model=BatchResponse,
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def upsert_batch(
    payload: BatchUpsert,
    db: AsyncSession = Depends(get_db),
) -> BatchResponse:
    try:
        return await service.upsert_batch(db, payload.batch_id, payload.batch_name)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{batch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def delete_batch(batch_id: str, db: AsyncSession = Depends(get_db)):
    """Delete a batch. Its students are kept without a batch."""
    if not await service.delete_batch(db, batch_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")


@router.get(
    "/{batch_id}/teachers",
    response_model=List[UserResponse],
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def get_batch_teachers(batch_id: str, db: AsyncSession = Depends(get_db)):
    return await assignment_service.get_batch_assignments(db, batch_id)
