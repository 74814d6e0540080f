from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text

from app.db.session import Base


class User(Base):
    """Admin or teacher account. Role is fixed at creation."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('Admin', 'Attendance Teacher', 'Batch Teacher')",
            name="ck_users_role",
        ),
        CheckConstraint("length(trim(username)) > 0", name="ck_users_username_not_blank"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(150), unique=True, nullable=False)
    # bcrypt hash, never the plain password
    password_hash = Column(Text, nullable=False)
    role = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
