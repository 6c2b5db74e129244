"""
Integration tests for StudentServiceManager

Tests subscription lifecycle, the composed student view and cost totals.
"""
import asyncio
from datetime import timedelta

import pytest

from school_core.exceptions import EntityNotFoundError
from school_core.repositories import ServiceRepository
from school_core.schemas import ErrorCode
from school_core.services import StudentServiceManager
from school_core.services.locks import KeyedLocks
from school_core.timeutils import utcnow


@pytest.fixture
def manager(session_factory):
    return StudentServiceManager(session_factory)


class TestAssignService:
    """Test the one-active-subscription-per-service rule"""

    @pytest.mark.asyncio
    async def test_assign(self, manager, add_student, add_catalog_service):
        student_id = await add_student()
        service_id = await add_catalog_service()

        result = await manager.assign_service_to_student(student_id, service_id, utcnow())

        assert result.success
        assert result.message == "Service assigned"
        overview = await manager.get_student_services(student_id)
        assert [s.id for s in overview.active] == [result.entity_id]

    @pytest.mark.asyncio
    async def test_already_active(self, manager, add_student, add_catalog_service):
        student_id = await add_student()
        service_id = await add_catalog_service()
        first = await manager.assign_service_to_student(student_id, service_id, utcnow())

        second = await manager.assign_service_to_student(student_id, service_id, utcnow())

        assert not second
        assert second.error is ErrorCode.ALREADY_ACTIVE
        assert second.message == "The student already has this service"
        assert second.entity_id == first.entity_id

    @pytest.mark.asyncio
    async def test_reassign_after_expiry(self, manager, add_student, add_catalog_service):
        student_id = await add_student()
        service_id = await add_catalog_service()
        now = utcnow()
        await manager.assign_service_to_student(
            student_id, service_id, now - timedelta(days=60), now - timedelta(days=1)
        )

        result = await manager.assign_service_to_student(student_id, service_id, now)

        assert result.success

    @pytest.mark.asyncio
    async def test_missing_student_or_service(self, manager, add_student, add_catalog_service):
        student_id = await add_student()
        service_id = await add_catalog_service()

        no_student = await manager.assign_service_to_student(999, service_id, utcnow())
        no_service = await manager.assign_service_to_student(student_id, 999, utcnow())

        assert no_student.error is ErrorCode.NOT_FOUND
        assert no_service.error is ErrorCode.NOT_FOUND


class TestTerminateService:
    @pytest.mark.asyncio
    async def test_terminate_moves_to_historical(self, manager, add_student, add_catalog_service):
        student_id = await add_student()
        service_id = await add_catalog_service()
        assigned = await manager.assign_service_to_student(
            student_id, service_id, utcnow() - timedelta(days=10)
        )

        result = await manager.terminate_service(assigned.entity_id)

        assert result.success
        overview = await manager.get_student_services(student_id, now=utcnow() + timedelta(seconds=1))
        assert overview.active == []
        assert [s.id for s in overview.historical] == [assigned.entity_id]
        assert overview.historical[0].end_date is not None

    @pytest.mark.asyncio
    async def test_terminate_twice_updates_end_date(self, manager, add_student, add_catalog_service):
        student_id = await add_student()
        assigned = await manager.assign_service_to_student(
            student_id, await add_catalog_service(), utcnow()
        )

        assert await manager.terminate_service(assigned.entity_id)
        assert await manager.terminate_service(assigned.entity_id)

    @pytest.mark.asyncio
    async def test_terminate_waits_for_pair_lock(self, session_factory, add_student, add_catalog_service):
        locks = KeyedLocks()
        manager = StudentServiceManager(session_factory, locks=locks)
        student_id = await add_student()
        service_id = await add_catalog_service()
        assigned = await manager.assign_service_to_student(student_id, service_id, utcnow())

        async with locks.hold(("student_service", student_id, service_id)):
            task = asyncio.create_task(manager.terminate_service(assigned.entity_id))
            await asyncio.sleep(0.1)
            assert not task.done()

        assert (await task).success

    @pytest.mark.asyncio
    async def test_terminate_missing(self, manager):
        result = await manager.terminate_service(999)

        assert not result
        assert result.error is ErrorCode.NOT_FOUND


class TestStudentServicesOverview:
    @pytest.mark.asyncio
    async def test_partition_active_and_historical(self, manager, add_student, add_catalog_service):
        student_id = await add_student()
        now = utcnow()
        open_ended = await manager.assign_service_to_student(
            student_id, await add_catalog_service("Tutorat"), now - timedelta(days=5)
        )
        ends_later = await manager.assign_service_to_student(
            student_id, await add_catalog_service("Sport", 50), now, now + timedelta(days=30)
        )
        ended = await manager.assign_service_to_student(
            student_id,
            await add_catalog_service("Art", 40),
            now - timedelta(days=90),
            now - timedelta(days=30),
        )

        overview = await manager.get_student_services(student_id, now=now)

        assert sorted(s.id for s in overview.active) == sorted(
            [open_ended.entity_id, ends_later.entity_id]
        )
        assert [s.id for s in overview.historical] == [ended.entity_id]

    @pytest.mark.asyncio
    async def test_end_date_equal_to_now_is_active(self, manager, add_student, add_catalog_service):
        student_id = await add_student()
        now = utcnow()
        await manager.assign_service_to_student(
            student_id, await add_catalog_service(), now - timedelta(days=1), now
        )

        overview = await manager.get_student_services(student_id, now=now)
        assert len(overview.active) == 1


class TestComposedView:
    """Test description and cost of a student extended by its services"""

    @pytest.mark.asyncio
    async def test_no_services(self, manager, add_student):
        student_id = await add_student("Jean Dupont", "10th")

        view = await manager.create_student_with_services(student_id)

        assert view.get_description() == "Student: Jean Dupont, Grade: 10th"
        assert view.get_cost() == 0

    @pytest.mark.asyncio
    async def test_costs_add_up(self, manager, add_student, add_catalog_service):
        student_id = await add_student("Jean Dupont", "10th")
        tutoring = await add_catalog_service("Tutorat", 25, "Maths support")
        sport = await add_catalog_service("Sport", 50)
        await manager.assign_service_to_student(student_id, tutoring, utcnow())
        await manager.assign_service_to_student(student_id, sport, utcnow())

        view = await manager.create_student_with_services(student_id)
        summary = await manager.calculate_student_services_total(student_id)

        assert view.get_description() == (
            "Student: Jean Dupont, Grade: 10th, Tutoring service: Maths support, Sports activity"
        )
        assert view.get_cost() == 75
        assert summary.total_cost == 75
        assert [line.name for line in summary.services] == ["Tutorat", "Sport"]

    @pytest.mark.asyncio
    async def test_ended_services_not_counted(self, manager, add_student, add_catalog_service):
        student_id = await add_student()
        now = utcnow()
        await manager.assign_service_to_student(
            student_id, await add_catalog_service("Art", 40), now - timedelta(days=60), now - timedelta(days=1)
        )

        view = await manager.create_student_with_services(student_id)
        summary = await manager.calculate_student_services_total(student_id)

        assert view.get_cost() == 0
        assert summary.total_cost == 0
        assert summary.services == []

    @pytest.mark.asyncio
    async def test_unknown_kind_counted_in_both(self, manager, add_student, add_catalog_service):
        student_id = await add_student("Jean Dupont", "10th")
        await manager.assign_service_to_student(
            student_id, await add_catalog_service("Music", 30), utcnow()
        )

        view = await manager.create_student_with_services(student_id)
        summary = await manager.calculate_student_services_total(student_id)

        assert view.get_description().endswith("Service: Music")
        assert view.get_cost() == summary.total_cost == 30

    @pytest.mark.asyncio
    async def test_deleted_catalog_entry(self, manager, session_factory, add_student, add_catalog_service):
        student_id = await add_student()
        kept = await add_catalog_service("Tutorat", 25)
        removed = await add_catalog_service("Sport", 50)
        await manager.assign_service_to_student(student_id, kept, utcnow())
        await manager.assign_service_to_student(student_id, removed, utcnow())
        async with session_factory() as session:
            await ServiceRepository(session).delete(removed)

        view = await manager.create_student_with_services(student_id)
        summary = await manager.calculate_student_services_total(student_id)

        assert len(view.contributions) == 2
        assert [(line.name, line.cost) for line in summary.services] == [
            ("Tutorat", 25),
            ("Unknown service", 0),
        ]
        assert view.get_cost() == summary.total_cost == 25

    @pytest.mark.asyncio
    async def test_missing_student_raises(self, manager):
        with pytest.raises(EntityNotFoundError):
            await manager.create_student_with_services(999)
        with pytest.raises(EntityNotFoundError):
            await manager.calculate_student_services_total(999)


class TestCatalog:
    @pytest.mark.asyncio
    async def test_add_and_list(self, manager):
        service_id = await manager.add_service("Tutorat", "Homework help", 25)

        services = await manager.get_all_services()

        assert [(s.id, s.name, s.cost) for s in services] == [(service_id, "Tutorat", 25)]

    @pytest.mark.asyncio
    async def test_negative_cost_rejected(self, manager):
        with pytest.raises(ValueError):
            await manager.add_service("Sport", "", -5)
        assert await manager.get_all_services() == []
