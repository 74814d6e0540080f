from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.api.v1.students.schemas import StudentResponse
from app.core.enums import AttendanceStatus


class AttendanceMark(BaseModel):
    prn: str = Field(..., min_length=1)
    date: date
    status: AttendanceStatus
    updated_at: Optional[datetime] = None


class AttendanceBulkItem(BaseModel):
    prn: str = Field(..., min_length=1)
    status: AttendanceStatus


class AttendanceBulkMark(BaseModel):
    date: date
    records: List[AttendanceBulkItem] = Field(..., min_length=1)


class AttendanceResponse(BaseModel):
    student_prn: str
    date: date
    status: AttendanceStatus
    updated_at: datetime

    class Config:
        from_attributes = True


class AttendanceRecordResponse(AttendanceResponse):
    name: str
    batch_id: Optional[str] = None


class AttendanceSummary(BaseModel):
    """Day totals. Unmarked students count towards total only."""

    total: int = 0
    present: int = 0
    absent: int = 0


class AbsentStudent(StudentResponse):
    # None when nothing was marked for the day
    status: Optional[AttendanceStatus] = None


class DatabaseStats(BaseModel):
    students: int
    attendance: int
    batches: int
