from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import can_view_batch, require_roles, resolve_scope
from app.auth.schemas import CurrentUser
from app.core.enums import Role
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .import_service import import_students
from .parsing import build_import_template, parse_rows
from .schemas import ImportReport, StudentResponse, StudentUpsert
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.get("", response_model=List[StudentResponse])
async def list_students(
    batch_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Students visible to the caller, optionally for one batch."""
    if batch_id:
        scope = resolve_scope(current_user.role, current_user.id)
        if not await can_view_batch(db, scope, batch_id):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Batch not assigned to you")
        return await service.list_students(db, batch_id)
    return await service.list_students_for_role(db, current_user.id, current_user.role)


@router.put(
    "",
    response_model=StudentResponse,
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def upsert_student(
    payload: StudentUpsert,
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    try:
        return await service.upsert_student(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/import",
    response_model=ImportReport,
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def import_students_file(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
) -> ImportReport:
    """Import a CSV or .xlsx roster. Good rows are saved; bad rows come back in `errors`."""
    try:
        rows = parse_rows(file.filename, await file.read())
        return await import_students(db, rows)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/import/template",
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def download_import_template() -> Response:
    return Response(
        content=build_import_template(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="students_template.xlsx"'},
    )


@router.get("/{prn}", response_model=StudentResponse)
async def get_student(
    prn: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    student = await service.get_student(db, prn)
    scope = resolve_scope(current_user.role, current_user.id)
    if not student or not await can_view_batch(db, scope, student.batch_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student


@router.delete(
    "/{prn}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def delete_student(prn: str, db: AsyncSession = Depends(get_db)):
    """Delete a student with their attendance and follow-ups."""
    if not await service.delete_student(db, prn):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
