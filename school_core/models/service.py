"""Service models - Extra-curricular service catalog and student subscriptions"""
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Column, DateTime, Float, Index, Integer, String, Text

from school_core.database import Base
from school_core.timeutils import utcnow


class Service(Base):
    """Catalog entry for a paid service (tutoring, sport, art, ...)"""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    cost = Column(
        Float,
        CheckConstraint("cost >= 0"),
        nullable=False,
        default=0,
    )

    __table_args__ = (
        Index("idx_services_name", "name"),
    )

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, cost={self.cost})>"


class StudentService(Base):
    """Time-bounded subscription of a student to a catalog service"""

    __tablename__ = "student_services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, nullable=False)
    service_id = Column(Integer, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_student_services_student", "student_id"),
        Index("idx_student_services_service", "service_id"),
        Index("idx_student_services_pair", "student_id", "service_id"),
    )

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Active while the end date is absent or not yet passed."""
        now = now or utcnow()
        return self.end_date is None or self.end_date >= now

    def __repr__(self):
        return (
            f"<StudentService(id={self.id}, student={self.student_id}, "
            f"service={self.service_id})>"
        )
