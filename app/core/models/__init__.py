from app.core.models.batch import Batch
from app.core.models.student import Student
from app.core.models.teacher_assignment import TeacherAssignment
from app.core.models.attendance import AttendanceRecord
from app.core.models.follow_up import FollowUp

__all__ = [
    "AttendanceRecord",
    "Batch",
    "FollowUp",
    "Student",
    "TeacherAssignment",
]
