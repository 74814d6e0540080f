from sqlalchemy import Column, ForeignKey, Index, String

from app.db.session import Base


class Student(Base):
    """Student keyed by PRN. Removing the batch detaches the student instead of deleting it."""

    __tablename__ = "students"
    __table_args__ = (Index("idx_students_batch", "batch_id"),)

    prn = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, default="")
    mobile = Column(String(50), nullable=True, default="")
    parent_mobile = Column(String(50), nullable=True, default="")
    batch_id = Column(String(100), ForeignKey("batches.batch_id", ondelete="SET NULL"), nullable=True)
