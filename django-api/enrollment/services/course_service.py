"""Course service - read-side seat availability."""

from collections.abc import Callable
from datetime import datetime

from django.utils import timezone

from enrollment.domain import CourseId
from enrollment.domain.errors import InvalidCourseIdError
from enrollment.services.capacity import CapacityGate, CourseAvailability
from enrollment.stores.interfaces import UnitOfWork


class CourseService:
    """Service for course availability lookups."""

    def __init__(
        self, unit_of_work: UnitOfWork, clock: Callable[[], datetime] = timezone.now
    ) -> None:
        self._uow = unit_of_work
        self._clock = clock

    def get_availability(self, course_id: str) -> CourseAvailability:
        """Return seat availability for a course.

        Raises:
            InvalidCourseIdError: If the course_id is not a valid UUID.
            CourseNotFoundError: If the course does not exist.
        """
        try:
            cid = CourseId.from_string(course_id)
        except (ValueError, TypeError, AttributeError):
            raise InvalidCourseIdError() from None

        with self._uow.read_only() as uow:
            return CapacityGate(uow.courses, self._clock).availability(cid)
