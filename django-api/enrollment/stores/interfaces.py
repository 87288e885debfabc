"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.

A UnitOfWork groups the stores that share one transaction. Services receive
the stores of an open unit of work; nothing reaches for a global handle.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from enrollment.domain import (
    Course,
    CourseId,
    DiscountCode,
    DiscountCodeId,
    Email,
    NewRegistration,
    ParentAccount,
    ParentProfile,
    PaymentStatus,
    Registration,
    RegistrationId,
)


class ConfirmationNumberConflict(Exception):
    """Raised by insert_within_capacity when the confirmation number is taken."""


class AccountStore(ABC):
    """Interface for parent account persistence."""

    @abstractmethod
    def get_by_email(self, email: Email) -> ParentAccount | None:
        """Return the account registered under email, or None."""
        ...

    @abstractmethod
    def get_or_create(
        self, email: Email, profile: ParentProfile
    ) -> tuple[ParentAccount, bool]:
        """Return the account for email, creating it from profile if missing.

        A concurrent insert of the same email must resolve to the row the
        other writer created. The bool is True when this call created it.
        """
        ...


class CourseStore(ABC):
    """Interface for course persistence operations."""

    @abstractmethod
    def get_course(self, course_id: CourseId, *, lock: bool = False) -> Course | None:
        """Return a course by ID, or None if not found.

        With lock=True the row is held until the surrounding transaction ends.
        """
        ...

    @abstractmethod
    def count_committed_seats(self, course_id: CourseId) -> int:
        """Count registrations for the course in a seat-occupying status."""
        ...


class DiscountStore(ABC):
    """Interface for discount code persistence operations."""

    @abstractmethod
    def get_by_code(self, code: str) -> DiscountCode | None:
        ...

    @abstractmethod
    def increment_uses_if_below_cap(self, discount_id: DiscountCodeId) -> bool:
        """Atomically add one use unless the cap is already reached.

        Returns False, with no mutation, when max_uses is set and
        current_uses >= max_uses at the moment of the update.
        """
        ...


class RegistrationStore(ABC):
    """Interface for registration persistence operations."""

    @abstractmethod
    def confirmation_number_exists(self, confirmation_number: str) -> bool:
        ...

    @abstractmethod
    def insert_within_capacity(self, new: NewRegistration) -> Registration | None:
        """Insert the registration only if the course keeps a free seat.

        Returns None, with no insert, when the committed seat count already
        equals the course capacity. Raises ConfirmationNumberConflict, with
        no insert, when another registration already holds the number.
        """
        ...

    @abstractmethod
    def get_registration(self, registration_id: RegistrationId) -> Registration | None:
        ...

    @abstractmethod
    def transition_status(
        self,
        registration_id: RegistrationId,
        from_statuses: frozenset[PaymentStatus],
        to_status: PaymentStatus,
    ) -> Registration | None:
        """Move the registration to to_status if its status is in from_statuses.

        Returns the updated registration, or None when the guard did not hold.
        """
        ...


class UnitOfWork(ABC):
    """A transaction scope exposing the stores bound to it."""

    accounts: AccountStore
    courses: CourseStore
    discounts: DiscountStore
    registrations: RegistrationStore

    @abstractmethod
    def atomic(self) -> AbstractContextManager["UnitOfWork"]:
        """Open a transaction; everything inside commits or rolls back together.

        Backend failures surface as StorageUnavailableError.
        """
        ...

    @abstractmethod
    def read_only(self) -> AbstractContextManager["UnitOfWork"]:
        """Expose the stores for reads without opening a write transaction.

        Backend failures surface as StorageUnavailableError.
        """
        ...
