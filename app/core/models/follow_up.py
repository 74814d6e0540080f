from sqlalchemy import Column, Date, ForeignKey, Index, Integer, String, Text

from app.db.session import Base


class FollowUp(Base):
    """Append-only contact/evidence record for an absent student."""

    __tablename__ = "followups"
    __table_args__ = (Index("idx_followups_student", "student_prn"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_prn = Column(String(100), ForeignKey("students.prn", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    # Path/reference to a file kept by the file storage layer
    proof_path = Column(String(1024), nullable=True)
    remarks = Column(Text, nullable=True)
