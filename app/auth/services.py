from datetime import datetime, timezone
from typing import Optional

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.schemas import LoginResponse, UserInfo
from app.auth.security import create_access_token, verify_password
from app.core.exceptions import ServiceError


async def find_user_by_credentials(
    db: AsyncSession, username: str, password: str
) -> Optional[UserInfo]:
    """Return the user whose username and password match, or None. A miss is not an error."""
    result = await db.execute(
        select(User).where(User.username == username).limit(1)
    )
    user = result.scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        return None
    return UserInfo.model_validate(user)


async def login_user(db: AsyncSession, username: str, password: str) -> LoginResponse:
    user = await find_user_by_credentials(db, username.strip(), password)
    if user is None:
        raise ServiceError("Invalid username or password", status.HTTP_401_UNAUTHORIZED)

    access_token = create_access_token(
        subject={
            "sub": str(user.id),
            "username": user.username,
            "role": user.role.value,
        }
    )
    return LoginResponse(
        access_token=access_token,
        user=user,
        issued_at=datetime.now(timezone.utc),
    )
