from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class FollowUpCreate(BaseModel):
    student_prn: str = Field(..., min_length=1)
    date: date
    proof_path: Optional[str] = None
    remarks: Optional[str] = None


class FollowUpResponse(BaseModel):
    id: int
    student_prn: str
    date: date
    proof_path: Optional[str] = None
    remarks: Optional[str] = None

    class Config:
        from_attributes = True


class FollowUpWithStudent(FollowUpResponse):
    name: str
    batch_id: Optional[str] = None
