"""
Student Service Manager

Sole authority for StudentService subscriptions. A subscription is active
while its end date is absent or not yet passed; a student holds at most one
active subscription per catalog service.

A student's composed view is an ordered list of contributions: the base
student description first, then one entry per active subscription. Known
service kinds (tutorat, sport, art) get their own label, any other catalog
entry a generic one, and every entry costs what the catalog says. The composed
cost therefore always equals calculate_student_services_total().
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from school_core.exceptions import EntityNotFoundError
from school_core.models import Service, Student, StudentService
from school_core.repositories import (
    ServiceRepository,
    StudentRepository,
    StudentServiceRepository,
)
from school_core.schemas import (
    ComposedStudentView,
    ErrorCode,
    OperationResult,
    ServiceContribution,
    ServiceCostLine,
    ServiceCostSummary,
    StudentServicesOverview,
)
from school_core.services.locks import KeyedLocks
from school_core.timeutils import utcnow

logger = logging.getLogger(__name__)

# Catalog name (lowercase) -> description label
KNOWN_SERVICE_KINDS: Dict[str, str] = {
    "tutorat": "Tutoring service",
    "sport": "Sports activity",
    "art": "Art class",
}

UNKNOWN_SERVICE = "Unknown service"


def base_contribution(student: Student) -> ServiceContribution:
    return ServiceContribution(
        description=f"Student: {student.name}, Grade: {student.grade}",
        cost=0.0,
    )


def service_contribution(service: Service) -> ServiceContribution:
    """Description fragment and cost one catalog service adds to a student."""
    label = KNOWN_SERVICE_KINDS.get(service.name.lower())
    if label is None:
        description = f"Service: {service.name}"
    elif service.description:
        description = f"{label}: {service.description}"
    else:
        description = label
    return ServiceContribution(description=description, cost=service.cost)


class StudentServiceManager:
    """Assign, terminate and price extra services for students"""

    def __init__(self, session_factory: async_sessionmaker, locks: Optional[KeyedLocks] = None):
        self._session_factory = session_factory
        self._locks = locks or KeyedLocks()

    async def get_all_services(self) -> List[Service]:
        async with self._session_factory() as session:
            return await ServiceRepository(session).get_all()

    async def add_service(self, name: str, description: str, cost: float) -> int:
        """
        Add a catalog entry.

        Raises:
            ValueError: If cost is negative
        """
        if cost < 0:
            raise ValueError(f"Service cost must be non-negative (got {cost})")

        async with self._session_factory() as session:
            service_id = await ServiceRepository(session).add(
                Service(name=name, description=description, cost=cost)
            )
        logger.info(f"Added service {service_id} ({name}, cost={cost})")
        return service_id

    async def assign_service_to_student(
        self,
        student_id: int,
        service_id: int,
        start_date: datetime,
        end_date: Optional[datetime] = None,
    ) -> OperationResult:
        try:
            async with self._locks.hold(("student_service", student_id, service_id)):
                async with self._session_factory() as session:
                    if await StudentRepository(session).get_by_id(student_id) is None:
                        return OperationResult.fail(
                            ErrorCode.NOT_FOUND, f"Student {student_id} does not exist"
                        )
                    if await ServiceRepository(session).get_by_id(service_id) is None:
                        return OperationResult.fail(
                            ErrorCode.NOT_FOUND, f"Service {service_id} does not exist"
                        )

                    repo = StudentServiceRepository(session)
                    existing = await repo.get_active_for_pair(student_id, service_id)
                    if existing is not None:
                        logger.warning(
                            f"Service {service_id} already active for student {student_id}"
                        )
                        return OperationResult.fail(
                            ErrorCode.ALREADY_ACTIVE,
                            "The student already has this service",
                            entity_id=existing.id,
                        )

                    student_service_id = await repo.add(
                        StudentService(
                            student_id=student_id,
                            service_id=service_id,
                            start_date=start_date,
                            end_date=end_date,
                        )
                    )

        except Exception as e:
            logger.error(
                f"Error assigning service {service_id} to student {student_id}: {e}",
                exc_info=True,
            )
            return OperationResult.fail(
                ErrorCode.INTERNAL_ERROR, "An error occurred while assigning the service"
            )

        logger.info(
            f"Assigned service {service_id} to student {student_id} "
            f"(subscription {student_service_id})"
        )
        return OperationResult.ok("Service assigned", entity_id=student_service_id)

    async def terminate_service(self, student_service_id: int) -> OperationResult:
        """End a subscription now. Terminating again moves the end date forward."""
        try:
            async with self._session_factory() as session:
                subscription = await StudentServiceRepository(session).get_by_id(student_service_id)
            if subscription is None:
                return OperationResult.fail(
                    ErrorCode.NOT_FOUND, f"Student service {student_service_id} not found"
                )

            key = ("student_service", subscription.student_id, subscription.service_id)
            async with self._locks.hold(key):
                async with self._session_factory() as session:
                    updated = await StudentServiceRepository(session).update(
                        student_service_id, end_date=utcnow()
                    )
        except Exception as e:
            logger.error(f"Error terminating subscription {student_service_id}: {e}", exc_info=True)
            return OperationResult.fail(
                ErrorCode.INTERNAL_ERROR, "An error occurred while terminating the service"
            )

        if not updated:
            return OperationResult.fail(
                ErrorCode.NOT_FOUND, f"Student service {student_service_id} not found"
            )

        logger.info(f"Terminated subscription {student_service_id}")
        return OperationResult.ok("Service terminated", entity_id=student_service_id)

    async def get_student_services(
        self,
        student_id: int,
        now: Optional[datetime] = None,
    ) -> StudentServicesOverview:
        """Split a student's subscriptions into active and historical."""
        now = now or utcnow()
        async with self._session_factory() as session:
            subscriptions = await StudentServiceRepository(session).get_by_student(student_id)

        return StudentServicesOverview(
            active=[s for s in subscriptions if s.is_active(now)],
            historical=[s for s in subscriptions if not s.is_active(now)],
        )

    async def create_student_with_services(self, student_id: int) -> ComposedStudentView:
        """
        Student view extended by the contributions of its active services.

        Raises:
            EntityNotFoundError: If the student does not exist
        """
        async with self._session_factory() as session:
            student = await StudentRepository(session).get_by_id(student_id)
            if student is None:
                raise EntityNotFoundError("Student", student_id)

            subscriptions = await StudentServiceRepository(session).get_active_by_student(student_id)
            services = await self._catalog_for(session, subscriptions)

        contributions = [base_contribution(student)]
        for subscription in subscriptions:
            service = services.get(subscription.service_id)
            # Catalog entry deleted since the subscription was made
            if service is None:
                continue
            contributions.append(service_contribution(service))

        return ComposedStudentView(
            student_id=student.id,
            name=student.name,
            email=student.email,
            grade=student.grade,
            contributions=contributions,
        )

    async def calculate_student_services_total(self, student_id: int) -> ServiceCostSummary:
        """
        Catalog cost of each active service of a student, and their sum.

        Raises:
            EntityNotFoundError: If the student does not exist
        """
        async with self._session_factory() as session:
            student = await StudentRepository(session).get_by_id(student_id)
            if student is None:
                raise EntityNotFoundError("Student", student_id)

            subscriptions = await StudentServiceRepository(session).get_active_by_student(student_id)
            services = await self._catalog_for(session, subscriptions)

        lines = []
        for subscription in subscriptions:
            service = services.get(subscription.service_id)
            lines.append(
                ServiceCostLine(
                    name=service.name if service else UNKNOWN_SERVICE,
                    cost=service.cost if service else 0.0,
                    start_date=subscription.start_date,
                    end_date=subscription.end_date,
                )
            )

        return ServiceCostSummary(
            student_id=student.id,
            student_name=student.name,
            services=lines,
            total_cost=sum(line.cost for line in lines),
        )

    async def _catalog_for(self, session, subscriptions: List[StudentService]) -> Dict[int, Service]:
        services = await ServiceRepository(session).get_by_ids(
            {s.service_id for s in subscriptions}
        )
        return {service.id: service for service in services}
