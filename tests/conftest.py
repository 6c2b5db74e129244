"""Shared fixtures: a fresh file-backed SQLite database per test"""
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.pool import NullPool

from school_core.database import init_db, make_engine, make_session_factory
from school_core.models import Service, Student, Teacher
from school_core.repositories import (
    CourseRepository,
    ServiceRepository,
    StudentRepository,
    TeacherRepository,
)
from school_core.services.course_factory import create_course
from school_core.timeutils import utcnow


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'school_test.db'}", poolclass=NullPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def now() -> datetime:
    return utcnow()


@pytest.fixture
def add_student(session_factory):
    """Insert a student and return its id"""

    async def _add(name: str = "Jean Dupont", grade: str = "10th", email: str = None) -> int:
        email = email or f"{name.lower().replace(' ', '.')}@school.example"
        async with session_factory() as session:
            return await StudentRepository(session).add(Student(name=name, email=email, grade=grade))

    return _add


@pytest.fixture
def add_teacher(session_factory):
    async def _add(name: str = "Marie Durand", specialization: str = "Mathematics") -> int:
        email = f"{name.lower().replace(' ', '.')}@school.example"
        async with session_factory() as session:
            return await TeacherRepository(session).add(
                Teacher(name=name, email=email, specialization=specialization)
            )

    return _add


@pytest.fixture
def add_course(session_factory):
    """Insert a course built by the factory and return its id"""

    async def _add(
        type_tag: str = "math",
        name: str = "Fundamental mathematics",
        start_offset_days: int = -30,
        length_days: int = 120,
        teacher_id: int = None,
    ) -> int:
        start = utcnow() + timedelta(days=start_offset_days)
        course = create_course(
            type_tag,
            name=name,
            start_date=start,
            end_date=start + timedelta(days=length_days),
            teacher_id=teacher_id,
        )
        async with session_factory() as session:
            return await CourseRepository(session).add(course)

    return _add


@pytest.fixture
def add_catalog_service(session_factory):
    async def _add(name: str = "Tutorat", cost: float = 25, description: str = "") -> int:
        async with session_factory() as session:
            return await ServiceRepository(session).add(
                Service(name=name, description=description, cost=cost)
            )

    return _add
