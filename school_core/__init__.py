"""School domain-service core: enrollments, resources, courses and student services."""

__version__ = "1.0.0"
