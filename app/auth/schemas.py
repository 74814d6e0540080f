from datetime import datetime

from pydantic import BaseModel, Field

from app.core.enums import Role


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str


class UserInfo(BaseModel):
    id: int
    username: str
    role: Role

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo
    issued_at: datetime


class CurrentUser(BaseModel):
    """Session data carried by the access token: id, username and role of the logged-in user."""

    id: int
    username: str
    role: Role
