"""Teacher to batch link. Batch Teachers only see students of batches linked here."""

from sqlalchemy import Column, ForeignKey, Index, Integer, String, UniqueConstraint

from app.db.session import Base


class TeacherAssignment(Base):
    __tablename__ = "teacher_assignments"
    __table_args__ = (
        UniqueConstraint("teacher_id", "batch_id", name="uq_teacher_assignment"),
        Index("idx_teacher_assignments", "teacher_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    batch_id = Column(String(100), ForeignKey("batches.batch_id", ondelete="CASCADE"), nullable=False)
