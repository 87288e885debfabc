"""Seat accounting and admission decisions for courses."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from django.utils import timezone

from enrollment.domain import ChildInfo, Course, CourseId
from enrollment.domain.errors import (
    CapacityExceededError,
    ChildAgeOutOfRangeError,
    CourseAlreadyStartedError,
    CourseNotFoundError,
)
from enrollment.stores.interfaces import CourseStore


@dataclass(frozen=True)
class CourseAvailability:
    course_id: CourseId
    capacity: int
    committed_seats: int
    available_spots: int
    is_open: bool


@dataclass(frozen=True)
class Admission:
    """A course admitted a new registration at the time of the check."""

    course: Course
    available_spots: int


class CapacityGate:
    """Computes remaining seats and decides admission.

    check_and_reserve locks the course row for the rest of the surrounding
    transaction; the registration insert then re-counts under that lock.
    """

    def __init__(
        self, courses: CourseStore, clock: Callable[[], datetime] = timezone.now
    ) -> None:
        self._courses = courses
        self._clock = clock

    def availability(self, course_id: CourseId) -> CourseAvailability:
        """Return the current seat picture for a course.

        Raises:
            CourseNotFoundError: If the course does not exist.
        """
        course = self._courses.get_course(course_id)
        if course is None:
            raise CourseNotFoundError()
        return self._availability(course)

    def check_and_reserve(
        self, course_id: CourseId, child: ChildInfo | None = None
    ) -> Admission:
        """Admit one more registration into the course.

        When child is given, their age on today's date must fall within the
        course min_age and max_age, both inclusive.

        Raises:
            CourseNotFoundError: If the course does not exist.
            CourseAlreadyStartedError: If the course start date has passed.
            CapacityExceededError: If no seat is left.
            ChildAgeOutOfRangeError: If the child is too young or too old.
        """
        course = self._courses.get_course(course_id, lock=True)
        if course is None:
            raise CourseNotFoundError()

        availability = self._availability(course)
        if course.start_date <= self._clock():
            raise CourseAlreadyStartedError()
        if availability.available_spots <= 0:
            raise CapacityExceededError()
        if child is not None:
            age = child.age_on(timezone.localdate(self._clock()))
            if not course.admits_age(age):
                raise ChildAgeOutOfRangeError(course.min_age, course.max_age)
        return Admission(course=course, available_spots=availability.available_spots)

    def _availability(self, course: Course) -> CourseAvailability:
        committed = self._courses.count_committed_seats(course.id)
        available = max(course.capacity.value - committed, 0)
        return CourseAvailability(
            course_id=course.id,
            capacity=course.capacity.value,
            committed_seats=committed,
            available_spots=available,
            is_open=available > 0 and course.start_date > self._clock(),
        )
