"""Daily attendance. One row per (student, date); re-marking overwrites the row."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint

from app.db.session import Base


class AttendanceRecord(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("student_prn", "date", name="uq_attendance_student_date"),
        CheckConstraint("status IN ('Present', 'Absent')", name="ck_attendance_status"),
        Index("idx_attendance_date", "date"),
        Index("idx_attendance_prn", "student_prn"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_prn = Column(String(100), ForeignKey("students.prn", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
