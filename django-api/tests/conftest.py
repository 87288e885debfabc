"""Pytest configuration and shared fixtures."""

import random
import uuid
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from enrollment import models
from enrollment.conf import EnrollmentSettings
from enrollment.domain import (
    Capacity,
    ChildInfo,
    Course,
    CourseId,
    DiscountCode,
    DiscountCodeId,
    EligibilityWindow,
    Email,
    EmergencyContact,
    Money,
    ParentProfile,
    Percentage,
)
from enrollment.services import RegistrationSubmission
from enrollment.stores.memory_store import InMemoryUnitOfWork

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


class SequenceRandom(random.Random):
    """Random source whose randint() replays a fixed list of values."""

    def __init__(self, values: list[int]) -> None:
        super().__init__()
        self._values = list(values)

    def randint(self, a: int, b: int) -> int:
        return self._values.pop(0)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def enrollment_settings() -> EnrollmentSettings:
    return EnrollmentSettings(
        confirmation_prefix="RB", confirmation_digits=6, confirmation_max_attempts=5
    )


@pytest.fixture
def uow() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork()


@pytest.fixture
def course_factory(uow: InMemoryUnitOfWork):
    """Add a course to the in-memory store."""

    def make(
        capacity: int = 10,
        starts_in: timedelta = timedelta(days=30),
        min_age: int | None = None,
        max_age: int | None = None,
    ) -> Course:
        course = Course(
            id=CourseId(uuid.uuid4()),
            title="Intro to Robotics",
            capacity=Capacity(capacity),
            start_date=NOW + starts_in,
            end_date=None,
            price=Money(Decimal("199.00")),
            min_age=min_age,
            max_age=max_age,
        )
        uow.add_course(course)
        return course

    return make


@pytest.fixture
def discount_factory(uow: InMemoryUnitOfWork):
    """Add a discount code to the in-memory store."""

    def make(
        code: str = "SUMMER10",
        max_uses: int | None = None,
        current_uses: int = 0,
        starts_at: datetime | None = None,
        ends_at: datetime | None = None,
        is_active: bool = True,
    ) -> DiscountCode:
        discount = DiscountCode(
            id=DiscountCodeId(uuid.uuid4()),
            code=code,
            description="10% summer discount",
            discount_percentage=Percentage(Decimal("10")),
            is_active=is_active,
            window=EligibilityWindow(starts_at=starts_at, ends_at=ends_at),
            max_uses=max_uses,
            current_uses=current_uses,
        )
        uow.add_discount(discount)
        return discount

    return make


@pytest.fixture
def submission_factory():
    """Build a validated RegistrationSubmission."""

    def make(
        course_id: CourseId,
        email: str = "parent@example.com",
        discount_code: str | None = None,
        first_name: str = "Dana",
        date_of_birth: date = date(2016, 4, 2),
    ) -> RegistrationSubmission:
        return RegistrationSubmission(
            parent_email=Email(email),
            parent_profile=ParentProfile(
                first_name=first_name,
                last_name="Rivera",
                phone="555-0100",
                address="12 Elm St",
                city="Springfield",
                state="IL",
                zip_code="62701",
            ),
            child=ChildInfo(
                first_name="Sam",
                last_name="Rivera",
                date_of_birth=date_of_birth,
                grade_level="4",
                allergies="peanuts",
            ),
            emergency_contact=EmergencyContact(
                name="Alex Rivera", relationship="Uncle", phone="555-0199"
            ),
            course_id=course_id,
            agreed_to_terms=True,
            photo_release=False,
            amount_paid=Money(Decimal("179.10")),
            discount_code=discount_code,
        )

    return make


@pytest.fixture
def db_course_factory():
    """Create a Course row."""

    def make(
        capacity: int = 10,
        starts_in: timedelta = timedelta(days=30),
        min_age: int | None = None,
        max_age: int | None = None,
    ) -> models.Course:
        return models.Course.objects.create(
            title="Intro to Robotics",
            description="Build and program a small robot.",
            capacity=capacity,
            start_date=timezone.now() + starts_in,
            price=Decimal("199.00"),
            min_age=min_age,
            max_age=max_age,
        )

    return make


@pytest.fixture
def db_discount_factory():
    """Create a DiscountCode row."""

    def make(
        code: str = "SUMMER10",
        max_uses: int | None = None,
        current_uses: int = 0,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        is_active: bool = True,
    ) -> models.DiscountCode:
        return models.DiscountCode.objects.create(
            code=code,
            description="10% summer discount",
            discount_percentage=Decimal("10.00"),
            is_active=is_active,
            start_date=start_date,
            end_date=end_date,
            max_uses=max_uses,
            current_uses=current_uses,
        )

    return make


@pytest.fixture
def registration_payload():
    """Build a POST /api/registrations body."""

    def make(course_id, **overrides) -> dict:
        payload = {
            "parentInfo": {
                "email": "parent@example.com",
                "firstName": "Dana",
                "lastName": "Rivera",
                "phone": "555-0100",
                "address": "12 Elm St",
                "city": "Springfield",
                "state": "IL",
                "zipCode": "62701",
            },
            "childInfo": {
                "firstName": "Sam",
                "lastName": "Rivera",
                "dateOfBirth": "2016-04-02",
                "gradeLevel": "4",
                "allergies": "peanuts",
            },
            "emergencyContact": {
                "name": "Alex Rivera",
                "relationship": "Uncle",
                "phone": "555-0199",
            },
            "selectedCourseId": str(course_id),
            "agreedToTerms": True,
            "photoRelease": False,
            "amountPaid": 179.10,
        }
        payload.update(overrides)
        return payload

    return make
