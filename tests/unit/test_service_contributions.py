"""Unit tests for service contribution labels"""
from school_core.models import Service, Student
from school_core.services.student_service_manager import (
    KNOWN_SERVICE_KINDS,
    base_contribution,
    service_contribution,
)


class TestServiceContribution:
    def test_known_kinds_use_their_label(self):
        contribution = service_contribution(Service(name="Tutorat", description="", cost=25))

        assert contribution.description == "Tutoring service"
        assert contribution.cost == 25

    def test_known_kind_with_description(self):
        contribution = service_contribution(Service(name="Sport", description="Football", cost=50))
        assert contribution.description == "Sports activity: Football"

    def test_match_is_on_lowercased_name(self):
        assert service_contribution(Service(name="ART", description="", cost=35)).description == "Art class"

    def test_unknown_kind_still_contributes_its_cost(self):
        contribution = service_contribution(Service(name="Cantine", description="Lunch", cost=40))

        assert contribution.description == "Service: Cantine"
        assert contribution.cost == 40

    def test_known_kinds(self):
        assert set(KNOWN_SERVICE_KINDS) == {"tutorat", "sport", "art"}


def test_base_contribution_is_free():
    student = Student(name="Chloé Moreau", email="chloe@school.example", grade="11th")
    contribution = base_contribution(student)

    assert contribution.description == "Student: Chloé Moreau, Grade: 11th"
    assert contribution.cost == 0
