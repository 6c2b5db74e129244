"""
Custom exceptions for the school domain-service layer.

Expected business-rule failures are reported through OperationResult values;
the exceptions below are reserved for programmer errors such as stale ids or
unsupported input that callers are expected to validate first.
"""


class SchoolCoreError(Exception):
    """Base class for exceptions raised by school_core."""
    pass


class EntityNotFoundError(SchoolCoreError):
    """A primary entity required by the operation does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class UnsupportedCourseTypeError(SchoolCoreError):
    """The course type tag does not map to a known course variant."""

    def __init__(self, type_tag: str):
        self.type_tag = type_tag
        super().__init__(f"Unsupported course type: {type_tag}")


class InvalidCourseDatesError(SchoolCoreError, ValueError):
    """Course end date is not after its start date."""
    pass


class InvalidEmailError(SchoolCoreError, ValueError):
    """Email address is empty or malformed."""
    pass


class ImmutableFieldError(SchoolCoreError, ValueError):
    """A field fixed at construction time was given a new value."""

    def __init__(self, entity: str, field: str):
        self.entity = entity
        self.field = field
        super().__init__(f"{entity}.{field} cannot be changed after creation")
