"""
Unit tests for the Course Factory

Tests type tag parsing, variant profiles, date validation and rebuilding
courses from stored rows.
"""
from datetime import datetime, timedelta

import pytest

from school_core.exceptions import InvalidCourseDatesError, UnsupportedCourseTypeError
from school_core.services.course_factory import (
    SUPPORTED_COURSE_TYPES,
    CourseCategory,
    CourseKind,
    Difficulty,
    course_profile,
    create_course,
    from_record,
    parse_course_kind,
)

START = datetime(2024, 9, 2, 8, 0)
END = datetime(2025, 6, 27, 17, 0)


def make(type_tag: str, **overrides):
    fields = {"name": "Course", "start_date": START, "end_date": END, "teacher_id": 1}
    fields.update(overrides)
    return create_course(type_tag, **fields)


class TestParseCourseKind:
    """Test type tag dispatch"""

    def test_core_categories(self):
        assert parse_course_kind("math") == CourseKind(CourseCategory.MATH)
        assert parse_course_kind("science") == CourseKind(CourseCategory.SCIENCE)
        assert parse_course_kind("history") == CourseKind(CourseCategory.HISTORY)

    def test_language_tags_share_one_variant(self):
        kinds = [parse_course_kind(tag) for tag in ("french", "english", "spanish")]

        assert {k.category for k in kinds} == {CourseCategory.LANGUAGE}
        assert [k.language for k in kinds] == ["French", "English", "Spanish"]

    def test_case_insensitive(self):
        assert parse_course_kind("MATH") == parse_course_kind("math")
        assert parse_course_kind(" Spanish ") == parse_course_kind("spanish")

    def test_unknown_tag_raises_with_tag(self):
        with pytest.raises(UnsupportedCourseTypeError) as exc_info:
            parse_course_kind("unknown")

        assert exc_info.value.type_tag == "unknown"
        assert "unknown" in str(exc_info.value)

    def test_generic_language_tag_is_not_supported(self):
        """'language' alone does not say which language to teach"""
        with pytest.raises(UnsupportedCourseTypeError):
            parse_course_kind("language")

    def test_supported_types_listed(self):
        assert SUPPORTED_COURSE_TYPES == ["math", "science", "history", "french", "english", "spanish"]


class TestCourseProfile:
    """Test fixed materials, equipment and difficulty per variant"""

    def test_math_profile(self):
        profile = course_profile(CourseKind(CourseCategory.MATH))

        assert profile.difficulty is Difficulty.MEDIUM
        assert "Scientific calculator" in profile.equipment
        assert "Mathematics textbook" in profile.materials

    def test_science_is_hard_with_safety_gear(self):
        profile = course_profile(CourseKind(CourseCategory.SCIENCE))

        assert profile.difficulty is Difficulty.HARD
        assert "Safety goggles" in profile.equipment

    def test_history_needs_no_equipment(self):
        profile = course_profile(CourseKind(CourseCategory.HISTORY))

        assert profile.difficulty is Difficulty.EASY
        assert profile.equipment == ()

    def test_language_materials_name_the_language(self):
        profile = course_profile(parse_course_kind("spanish"))

        assert profile.materials[0] == "Spanish textbook"
        assert profile.difficulty is Difficulty.MEDIUM
        assert profile.equipment == ("Headphones for listening exercises",)

    def test_profile_depends_only_on_kind(self):
        kind = parse_course_kind("science")
        assert course_profile(kind) == course_profile(kind)


class TestCreateCourse:
    """Test course construction"""

    def test_create_math_course(self):
        course = make("math", name="Algebra")

        assert course.course_type == "math"
        assert course.difficulty == "medium"
        assert "Scientific calculator" in course.equipment
        assert course.name == "Algebra"
        assert course.id is None

    def test_course_type_is_normalized(self):
        course = make("English")
        assert course.course_type == "english"
        assert course.materials[0] == "English textbook"

    def test_unsupported_type_has_no_fallback(self):
        with pytest.raises(UnsupportedCourseTypeError, match="unknown"):
            make("unknown")

    def test_end_must_follow_start(self):
        with pytest.raises(InvalidCourseDatesError):
            make("math", end_date=START)

        with pytest.raises(InvalidCourseDatesError):
            make("math", end_date=START - timedelta(days=1))

    def test_invalid_dates_are_value_errors(self):
        with pytest.raises(ValueError):
            make("history", end_date=START)


class TestFromRecord:
    """Test rebuilding a variant from a stored course"""

    def test_round_trip_keeps_variant(self):
        for tag in SUPPORTED_COURSE_TYPES:
            course = make(tag, id=7)
            details = from_record(course)

            assert details.course is course
            assert details.materials == course.materials
            assert details.difficulty == course.difficulty

    def test_language_details(self):
        details = from_record(make("french"))

        assert details.category == "language"
        assert details.language == "French"

    def test_out_of_band_course_type_fails(self):
        course = make("math")
        course.course_type = "astrology"

        with pytest.raises(UnsupportedCourseTypeError):
            from_record(course)
