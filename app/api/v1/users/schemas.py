from datetime import datetime

from pydantic import BaseModel, Field

from app.core.enums import Role


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=1)
    role: Role


class UserResponse(BaseModel):
    id: int
    username: str
    role: Role
    created_at: datetime

    class Config:
        from_attributes = True
