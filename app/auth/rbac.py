"""Role-based visibility.

Admins and Attendance Teachers see every student. Batch Teachers see only the students
of batches linked to them in teacher_assignments. Every role-scoped read goes through
resolve_scope() + apply_student_scope() so the restriction is identical everywhere.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from fastapi import Depends, HTTPException, status
from sqlalchemy import Select, false, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.enums import Role
from app.core.models import Student, TeacherAssignment


class ScopeKind(str, Enum):
    ALL = "ALL"
    ASSIGNED = "ASSIGNED"
    NONE = "NONE"


@dataclass(frozen=True)
class AccessScope:
    kind: ScopeKind
    teacher_id: Optional[int] = None


UNRESTRICTED = AccessScope(ScopeKind.ALL)
NOTHING = AccessScope(ScopeKind.NONE)


def resolve_scope(role: Union[Role, str, None], teacher_id: Optional[int]) -> AccessScope:
    """Map (role, teacher id) to the set of students that caller may see."""
    try:
        role = Role(role)
    except ValueError:
        return NOTHING

    if role is Role.ADMIN or role is Role.ATTENDANCE_TEACHER:
        return UNRESTRICTED
    if role is Role.BATCH_TEACHER:
        if teacher_id is None:
            return NOTHING
        return AccessScope(ScopeKind.ASSIGNED, teacher_id=teacher_id)
    raise ValueError(f"Unhandled role: {role}")


def optional_scope(role: Union[Role, str, None], teacher_id: Optional[int]) -> AccessScope:
    """Scope for reads where the role is optional: no role means an internal, unscoped read."""
    if role is None:
        return UNRESTRICTED
    return resolve_scope(role, teacher_id)


def apply_student_scope(stmt: Select, scope: AccessScope) -> Select:
    """Restrict a statement that already selects from or joins Student."""
    if scope.kind is ScopeKind.ALL:
        return stmt
    if scope.kind is ScopeKind.ASSIGNED:
        return stmt.join(
            TeacherAssignment, TeacherAssignment.batch_id == Student.batch_id
        ).where(TeacherAssignment.teacher_id == scope.teacher_id)
    return stmt.where(false())


def require_roles(*roles: Role):
    """
    Dependency factory that only lets the given roles through.

    Example:
        Depends(require_roles(Role.ADMIN))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker


async def can_view_batch(db: AsyncSession, scope: AccessScope, batch_id: Optional[str]) -> bool:
    """Whether students of batch_id fall inside the scope."""
    if scope.kind is ScopeKind.ALL:
        return True
    if scope.kind is ScopeKind.NONE or not batch_id:
        return False
    result = await db.execute(
        select(TeacherAssignment.id).where(
            TeacherAssignment.teacher_id == scope.teacher_id,
            TeacherAssignment.batch_id == batch_id,
        )
    )
    return result.first() is not None
