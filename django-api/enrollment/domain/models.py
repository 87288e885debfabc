"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in enrollment/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from enrollment.domain.value_objects import (
    Capacity,
    ConfirmationNumber,
    CourseId,
    DiscountCodeId,
    EligibilityWindow,
    Email,
    Money,
    ParentAccountId,
    Percentage,
    RegistrationId,
)


class PaymentStatus(Enum):
    """Payment state of a registration."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def committed(cls) -> frozenset["PaymentStatus"]:
        """Statuses that occupy a course seat."""
        return frozenset({cls.PENDING, cls.COMPLETED})


@dataclass(frozen=True)
class ParentProfile:
    """Contact and address fields supplied with a submission."""

    first_name: str
    last_name: str
    phone: str
    address: str
    city: str
    state: str
    zip_code: str


@dataclass(frozen=True)
class ParentAccount:
    """Domain representation of a ParentAccount."""

    id: ParentAccountId
    email: Email
    profile: ParentProfile
    created_at: datetime


@dataclass(frozen=True)
class Course:
    """Domain representation of a Course."""

    id: CourseId
    title: str
    capacity: Capacity
    start_date: datetime
    end_date: datetime | None
    price: Money
    min_age: int | None = None
    max_age: int | None = None

    def __post_init__(self) -> None:
        if (
            self.min_age is not None
            and self.max_age is not None
            and self.max_age < self.min_age
        ):
            raise ValueError("Course max_age must not be below min_age")

    def admits_age(self, age: int) -> bool:
        if self.min_age is not None and age < self.min_age:
            return False
        if self.max_age is not None and age > self.max_age:
            return False
        return True


@dataclass(frozen=True)
class DiscountCode:
    """Domain representation of a DiscountCode."""

    id: DiscountCodeId
    code: str
    description: str
    discount_percentage: Percentage
    is_active: bool
    window: EligibilityWindow
    max_uses: int | None
    current_uses: int

    @property
    def cap_reached(self) -> bool:
        return self.max_uses is not None and self.current_uses >= self.max_uses


@dataclass(frozen=True)
class ChildInfo:
    first_name: str
    last_name: str
    date_of_birth: date
    grade_level: str
    allergies: str = ""
    special_needs: str = ""

    def age_on(self, today: date) -> int:
        """Whole years completed on today; the birthday itself counts."""
        age = today.year - self.date_of_birth.year
        if (today.month, today.day) < (self.date_of_birth.month, self.date_of_birth.day):
            age -= 1
        return age


@dataclass(frozen=True)
class EmergencyContact:
    name: str
    relationship: str
    phone: str


@dataclass(frozen=True)
class NewRegistration:
    """Registration fields assembled by the orchestrator before insert."""

    confirmation_number: ConfirmationNumber
    parent_id: ParentAccountId
    course_id: CourseId
    child: ChildInfo
    emergency_contact: EmergencyContact
    agreed_to_terms: bool
    photo_release: bool
    discount_code_id: DiscountCodeId | None
    amount_paid: Money
    payment_status: PaymentStatus


@dataclass(frozen=True)
class Registration:
    """Domain representation of a persisted Registration."""

    id: RegistrationId
    confirmation_number: ConfirmationNumber
    parent_id: ParentAccountId
    course_id: CourseId
    child: ChildInfo
    emergency_contact: EmergencyContact
    agreed_to_terms: bool
    photo_release: bool
    discount_code_id: DiscountCodeId | None
    amount_paid: Money
    payment_status: PaymentStatus
    created_at: datetime
