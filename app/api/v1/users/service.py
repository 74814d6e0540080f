from typing import List, Optional

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.security import hash_password
from app.core.enums import TEACHER_ROLES, Role
from app.core.exceptions import ServiceError

from .schemas import UserResponse


async def create_user(db: AsyncSession, username: str, password: str, role: Role) -> UserResponse:
    """Create an account with a hashed password. Usernames are unique."""
    username = (username or "").strip()
    if not username:
        raise ServiceError("Username is required", status.HTTP_400_BAD_REQUEST)
    if not password:
        raise ServiceError("Password is required", status.HTTP_400_BAD_REQUEST)

    user = User(
        username=username,
        password_hash=hash_password(password),
        role=Role(role).value,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError(f"Username already exists: {username}", status.HTTP_409_CONFLICT)
    await db.refresh(user)
    return UserResponse.model_validate(user)


async def get_user(db: AsyncSession, user_id: int) -> Optional[UserResponse]:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    return UserResponse.model_validate(user) if user else None


async def list_teachers(db: AsyncSession) -> List[UserResponse]:
    """Attendance and Batch Teachers, by username."""
    result = await db.execute(
        select(User)
        .where(User.role.in_([r.value for r in TEACHER_ROLES]))
        .order_by(User.username.asc())
    )
    return [UserResponse.model_validate(u) for u in result.scalars().all()]
