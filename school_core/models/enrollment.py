"""Enrollment model - Links one student to one course with an optional grade"""
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    UniqueConstraint,
)

from school_core.database import Base
from school_core.timeutils import utcnow

MIN_GRADE = 0
MAX_GRADE = 20


class Enrollment(Base):
    """Student enrollment in a course, graded on a 0-20 scale"""

    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, nullable=False)
    course_id = Column(Integer, nullable=False)
    enrollment_date = Column(DateTime, default=utcnow, nullable=False)
    grade = Column(
        Float,
        CheckConstraint(f"grade >= {MIN_GRADE} AND grade <= {MAX_GRADE}"),
        nullable=True,
    )

    __table_args__ = (
        # One enrollment per (student, course) pair
        UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
        Index("idx_enrollments_student", "student_id"),
        Index("idx_enrollments_course", "course_id"),
    )

    def __repr__(self):
        return f"<Enrollment(id={self.id}, student={self.student_id}, course={self.course_id})>"
