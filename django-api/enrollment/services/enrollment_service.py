"""Enrollment service - the registration transaction lives here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

enroll() runs identity resolution, the capacity check, the discount consume
and the registration insert inside one unit of work. A rejection at any step
rolls back everything before it, including a consumed discount use.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from django.utils import timezone

from enrollment.conf import EnrollmentSettings, get_enrollment_settings
from enrollment.domain import (
    ChildInfo,
    ConfirmationNumber,
    CourseId,
    Email,
    EmergencyContact,
    Money,
    NewRegistration,
    ParentAccount,
    ParentProfile,
    PaymentStatus,
    Registration,
    RegistrationId,
)
from enrollment.domain.errors import (
    CapacityExceededError,
    ConfirmationGenerationExhaustedError,
    DomainError,
    InvalidRegistrationIdError,
    RegistrationAlreadyCancelledError,
    RegistrationNotFoundError,
)
from enrollment.services.capacity import CapacityGate
from enrollment.services.confirmation import ConfirmationMinter
from enrollment.services.discounts import DiscountDetails, DiscountLedger
from enrollment.services.identity import IdentityResolver
from enrollment.stores.interfaces import ConfirmationNumberConflict, UnitOfWork

logger = logging.getLogger(__name__)


class EnrollmentState(Enum):
    RECEIVED = "received"
    IDENTITY_RESOLVED = "identity_resolved"
    CAPACITY_CHECKED = "capacity_checked"
    DISCOUNT_APPLIED = "discount_applied"
    PERSISTED = "persisted"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class RegistrationSubmission:
    """A registration request that already passed input validation."""

    parent_email: Email
    parent_profile: ParentProfile
    child: ChildInfo
    emergency_contact: EmergencyContact
    course_id: CourseId
    agreed_to_terms: bool
    photo_release: bool
    amount_paid: Money
    discount_code: str | None = None


@dataclass(frozen=True)
class EnrollmentConfirmation:
    confirmation_number: ConfirmationNumber
    registration_id: RegistrationId
    course_id: CourseId
    parent_email: Email


class EnrollmentService:
    """Service for registration intake and lifecycle."""

    def __init__(
        self,
        unit_of_work: UnitOfWork,
        clock: Callable[[], datetime] = timezone.now,
        settings: EnrollmentSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._uow = unit_of_work
        self._clock = clock
        self._settings = settings or get_enrollment_settings()
        self._rng = rng

    def enroll(self, submission: RegistrationSubmission) -> EnrollmentConfirmation:
        """Register a child into a course.

        Raises:
            ValueError: If terms were not agreed to.
            CourseNotFoundError: If the course does not exist.
            CourseAlreadyStartedError: If the course already began.
            CapacityExceededError: If the course is full.
            ChildAgeOutOfRangeError: If the child is outside the course age bounds.
            DiscountCodeNotFoundError, DiscountNotYetActiveError,
            DiscountExpiredError, DiscountUsageCapReachedError:
                If the supplied discount code cannot be applied.
            ConfirmationGenerationExhaustedError: If no free number was found.
            StorageUnavailableError: If the store failed.
        """
        if not submission.agreed_to_terms:
            raise ValueError("Terms must be agreed to before enrolling")

        state = EnrollmentState.RECEIVED
        try:
            with self._uow.atomic() as uow:
                account = IdentityResolver(uow.accounts).resolve(
                    submission.parent_email, submission.parent_profile
                )
                state = self._enter(EnrollmentState.IDENTITY_RESOLVED, submission)

                CapacityGate(uow.courses, self._clock).check_and_reserve(
                    submission.course_id, child=submission.child
                )
                state = self._enter(EnrollmentState.CAPACITY_CHECKED, submission)

                discount: DiscountDetails | None = None
                if submission.discount_code:
                    ledger = DiscountLedger(uow.discounts, self._clock)
                    discount = ledger.validate(submission.discount_code)
                    ledger.consume(discount.id)
                    state = self._enter(EnrollmentState.DISCOUNT_APPLIED, submission)

                registration = self._insert_registration(uow, submission, account, discount)
                state = self._enter(EnrollmentState.PERSISTED, submission)
        except DomainError as error:
            logger.warning(
                "Enrollment into course %s rejected after %s: %s",
                submission.course_id,
                state.value,
                error.code.value,
            )
            raise

        self._enter(EnrollmentState.CONFIRMED, submission)
        logger.info(
            "Registration %s confirmed as %s for course %s",
            registration.id,
            registration.confirmation_number,
            registration.course_id,
        )
        return EnrollmentConfirmation(
            confirmation_number=registration.confirmation_number,
            registration_id=registration.id,
            course_id=registration.course_id,
            parent_email=account.email,
        )

    def validate_discount(self, code: str) -> DiscountDetails:
        """Check a discount code without consuming it."""
        with self._uow.read_only() as uow:
            return DiscountLedger(uow.discounts, self._clock).validate(code)

    def get_registration(self, registration_id: str) -> Registration:
        """Return a registration by ID.

        Raises:
            InvalidRegistrationIdError: If registration_id is not a valid UUID.
            RegistrationNotFoundError: If the registration does not exist.
        """
        rid = self._parse_registration_id(registration_id)
        with self._uow.read_only() as uow:
            registration = uow.registrations.get_registration(rid)
        if registration is None:
            raise RegistrationNotFoundError()
        return registration

    def cancel_registration(self, registration_id: str) -> Registration:
        """Cancel a registration, releasing its seat.

        The discount use it consumed is not returned to the code.

        Raises:
            InvalidRegistrationIdError: If registration_id is not a valid UUID.
            RegistrationNotFoundError: If the registration does not exist.
            RegistrationAlreadyCancelledError: If it was cancelled before.
        """
        rid = self._parse_registration_id(registration_id)
        with self._uow.atomic() as uow:
            cancelled = uow.registrations.transition_status(
                rid, PaymentStatus.committed(), PaymentStatus.CANCELLED
            )
            if cancelled is None:
                if uow.registrations.get_registration(rid) is None:
                    raise RegistrationNotFoundError()
                raise RegistrationAlreadyCancelledError()

        logger.info("Registration %s cancelled", rid)
        return cancelled

    def _insert_registration(
        self,
        uow: UnitOfWork,
        submission: RegistrationSubmission,
        account: ParentAccount,
        discount: DiscountDetails | None,
    ) -> Registration:
        # A number that passed the existence check can still be taken by a
        # concurrent commit before our insert; mint again in that case.
        minter = self._minter(uow)
        for _ in range(self._settings.confirmation_max_attempts):
            confirmation_number = minter.mint()
            try:
                registration = uow.registrations.insert_within_capacity(
                    NewRegistration(
                        confirmation_number=confirmation_number,
                        parent_id=account.id,
                        course_id=submission.course_id,
                        child=submission.child,
                        emergency_contact=submission.emergency_contact,
                        agreed_to_terms=submission.agreed_to_terms,
                        photo_release=submission.photo_release,
                        discount_code_id=discount.id if discount else None,
                        amount_paid=submission.amount_paid,
                        payment_status=PaymentStatus.COMPLETED,
                    )
                )
            except ConfirmationNumberConflict:
                logger.debug("Confirmation number %s taken at insert", confirmation_number)
                continue
            if registration is None:
                raise CapacityExceededError()
            return registration

        logger.error(
            "Confirmation numbers kept colliding at insert for course %s",
            submission.course_id,
        )
        raise ConfirmationGenerationExhaustedError()

    def _minter(self, uow: UnitOfWork) -> ConfirmationMinter:
        return ConfirmationMinter(
            uow.registrations,
            prefix=self._settings.confirmation_prefix,
            digits=self._settings.confirmation_digits,
            max_attempts=self._settings.confirmation_max_attempts,
            rng=self._rng,
        )

    @staticmethod
    def _enter(state: EnrollmentState, submission: RegistrationSubmission) -> EnrollmentState:
        logger.debug("Enrollment into course %s: %s", submission.course_id, state.value)
        return state

    @staticmethod
    def _parse_registration_id(registration_id: str) -> RegistrationId:
        try:
            return RegistrationId.from_string(registration_id)
        except (ValueError, TypeError, AttributeError):
            raise InvalidRegistrationIdError() from None
