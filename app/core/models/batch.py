from sqlalchemy import Column, String

from app.db.session import Base


class Batch(Base):
    """Named group of students. batch_id is supplied by the importer or admin."""

    __tablename__ = "batches"

    batch_id = Column(String(100), primary_key=True)
    batch_name = Column(String(255), nullable=False)
