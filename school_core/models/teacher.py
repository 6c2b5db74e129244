"""Teacher model - Teaching staff and their specialization"""
from typing import List

from sqlalchemy import Column, DateTime, Index, Integer, String
from sqlalchemy.orm import validates

from school_core.database import Base
from school_core.models.student import validate_email_address
from school_core.timeutils import utcnow


class Teacher(Base):
    """Teacher with contact details and specialization"""

    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    specialization = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_teachers_specialization", "specialization"),
    )

    @validates("email")
    def _validate_email(self, key, value):
        return validate_email_address(value)

    def __repr__(self):
        return f"<Teacher(id={self.id}, name={self.name}, specialization={self.specialization})>"


class QualifiedTeacher:
    """Teacher with a list of qualifications held in memory, not persisted"""

    def __init__(self, teacher: Teacher):
        self.teacher = teacher
        self._qualifications: List[str] = []

    def add_qualification(self, qualification: str) -> None:
        if qualification not in self._qualifications:
            self._qualifications.append(qualification)

    def get_qualifications(self) -> List[str]:
        return list(self._qualifications)

    def __getattr__(self, name):
        return getattr(self.teacher, name)
