"""In-memory implementation of the enrollment stores.

Provides a simple store for development and testing. Not suitable for
production use as state is lost on process restart.

Transactions are serializable: atomic() holds a process-wide lock and
restores a snapshot of every table if the block raises.
"""

import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace

from django.utils import timezone

from enrollment.domain import (
    Course,
    CourseId,
    DiscountCode,
    DiscountCodeId,
    Email,
    NewRegistration,
    ParentAccount,
    ParentAccountId,
    ParentProfile,
    PaymentStatus,
    Registration,
    RegistrationId,
)
from enrollment.stores.interfaces import (
    AccountStore,
    ConfirmationNumberConflict,
    CourseStore,
    DiscountStore,
    RegistrationStore,
    UnitOfWork,
)


@dataclass
class _Tables:
    accounts: dict[str, ParentAccount] = field(default_factory=dict)
    courses: dict[CourseId, Course] = field(default_factory=dict)
    discounts: dict[DiscountCodeId, DiscountCode] = field(default_factory=dict)
    registrations: dict[RegistrationId, Registration] = field(default_factory=dict)

    def snapshot(self) -> "_Tables":
        return _Tables(
            accounts=dict(self.accounts),
            courses=dict(self.courses),
            discounts=dict(self.discounts),
            registrations=dict(self.registrations),
        )

    def restore(self, snapshot: "_Tables") -> None:
        self.accounts = snapshot.accounts
        self.courses = snapshot.courses
        self.discounts = snapshot.discounts
        self.registrations = snapshot.registrations


class InMemoryAccountStore(AccountStore):
    def __init__(self, tables: _Tables, lock: threading.RLock) -> None:
        self._tables = tables
        self._lock = lock

    def get_by_email(self, email: Email) -> ParentAccount | None:
        with self._lock:
            return self._tables.accounts.get(email.value)

    def get_or_create(
        self, email: Email, profile: ParentProfile
    ) -> tuple[ParentAccount, bool]:
        with self._lock:
            existing = self._tables.accounts.get(email.value)
            if existing is not None:
                return existing, False
            account = ParentAccount(
                id=ParentAccountId(uuid.uuid4()),
                email=email,
                profile=profile,
                created_at=timezone.now(),
            )
            self._tables.accounts[email.value] = account
            return account, True


class InMemoryCourseStore(CourseStore):
    def __init__(self, tables: _Tables, lock: threading.RLock) -> None:
        self._tables = tables
        self._lock = lock

    def get_course(self, course_id: CourseId, *, lock: bool = False) -> Course | None:
        # Every atomic() already holds the table lock.
        with self._lock:
            return self._tables.courses.get(course_id)

    def count_committed_seats(self, course_id: CourseId) -> int:
        committed = PaymentStatus.committed()
        with self._lock:
            return sum(
                1
                for registration in self._tables.registrations.values()
                if registration.course_id == course_id
                and registration.payment_status in committed
            )


class InMemoryDiscountStore(DiscountStore):
    def __init__(self, tables: _Tables, lock: threading.RLock) -> None:
        self._tables = tables
        self._lock = lock

    def get_by_code(self, code: str) -> DiscountCode | None:
        with self._lock:
            for discount in self._tables.discounts.values():
                if discount.code == code:
                    return discount
            return None

    def increment_uses_if_below_cap(self, discount_id: DiscountCodeId) -> bool:
        with self._lock:
            discount = self._tables.discounts.get(discount_id)
            if discount is None or discount.cap_reached:
                return False
            self._tables.discounts[discount_id] = replace(
                discount, current_uses=discount.current_uses + 1
            )
            return True


class InMemoryRegistrationStore(RegistrationStore):
    def __init__(
        self, tables: _Tables, lock: threading.RLock, courses: InMemoryCourseStore
    ) -> None:
        self._tables = tables
        self._lock = lock
        self._courses = courses

    def confirmation_number_exists(self, confirmation_number: str) -> bool:
        with self._lock:
            return any(
                registration.confirmation_number.value == confirmation_number
                for registration in self._tables.registrations.values()
            )

    def insert_within_capacity(self, new: NewRegistration) -> Registration | None:
        with self._lock:
            course = self._tables.courses[new.course_id]
            if self._courses.count_committed_seats(new.course_id) >= course.capacity.value:
                return None
            if self.confirmation_number_exists(new.confirmation_number.value):
                raise ConfirmationNumberConflict(new.confirmation_number.value)
            registration = Registration(
                id=RegistrationId(uuid.uuid4()),
                confirmation_number=new.confirmation_number,
                parent_id=new.parent_id,
                course_id=new.course_id,
                child=new.child,
                emergency_contact=new.emergency_contact,
                agreed_to_terms=new.agreed_to_terms,
                photo_release=new.photo_release,
                discount_code_id=new.discount_code_id,
                amount_paid=new.amount_paid,
                payment_status=new.payment_status,
                created_at=timezone.now(),
            )
            self._tables.registrations[registration.id] = registration
            return registration

    def get_registration(self, registration_id: RegistrationId) -> Registration | None:
        with self._lock:
            return self._tables.registrations.get(registration_id)

    def transition_status(
        self,
        registration_id: RegistrationId,
        from_statuses: frozenset[PaymentStatus],
        to_status: PaymentStatus,
    ) -> Registration | None:
        with self._lock:
            registration = self._tables.registrations.get(registration_id)
            if registration is None or registration.payment_status not in from_statuses:
                return None
            updated = replace(registration, payment_status=to_status)
            self._tables.registrations[registration_id] = updated
            return updated


class InMemoryUnitOfWork(UnitOfWork):
    """Unit of work over process-local dictionaries."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tables = _Tables()
        self.accounts = InMemoryAccountStore(self._tables, self._lock)
        self.courses = InMemoryCourseStore(self._tables, self._lock)
        self.discounts = InMemoryDiscountStore(self._tables, self._lock)
        self.registrations = InMemoryRegistrationStore(
            self._tables, self._lock, self.courses
        )

    def add_course(self, course: Course) -> None:
        with self._lock:
            self._tables.courses[course.id] = course

    def add_discount(self, discount: DiscountCode) -> None:
        with self._lock:
            self._tables.discounts[discount.id] = discount

    def get_discount(self, discount_id: DiscountCodeId) -> DiscountCode | None:
        with self._lock:
            return self._tables.discounts.get(discount_id)

    @contextmanager
    def atomic(self) -> Iterator["InMemoryUnitOfWork"]:
        with self._lock:
            snapshot = self._tables.snapshot()
            try:
                yield self
            except BaseException:
                self._tables.restore(snapshot)
                raise

    @contextmanager
    def read_only(self) -> Iterator["InMemoryUnitOfWork"]:
        with self._lock:
            yield self
