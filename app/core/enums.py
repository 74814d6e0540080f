from enum import Enum


class Role(str, Enum):
    ADMIN = "Admin"
    ATTENDANCE_TEACHER = "Attendance Teacher"
    BATCH_TEACHER = "Batch Teacher"


TEACHER_ROLES = (Role.ATTENDANCE_TEACHER, Role.BATCH_TEACHER)


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
