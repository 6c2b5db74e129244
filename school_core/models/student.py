"""Student model - Students enrolled in courses and subscribed to services"""
import re

from sqlalchemy import Column, DateTime, Index, Integer, String
from sqlalchemy.orm import validates

from school_core.database import Base
from school_core.exceptions import InvalidEmailError
from school_core.timeutils import utcnow

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email_address(value: str) -> str:
    """Return the stripped address, or raise InvalidEmailError."""
    value = (value or "").strip()
    if not value:
        raise InvalidEmailError("Email address is required")
    if not EMAIL_PATTERN.match(value):
        raise InvalidEmailError(f"Invalid email address: {value}")
    return value


class Student(Base):
    """Student with contact details and grade level"""

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    grade = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_students_name", "name"),
        Index("idx_students_grade", "grade"),
    )

    @validates("email")
    def _validate_email(self, key, value):
        return validate_email_address(value)

    def __repr__(self):
        return f"<Student(id={self.id}, name={self.name}, grade={self.grade})>"
