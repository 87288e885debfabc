"""Unit tests for the enrollment services.

These test business rules and domain error mapping against the in-memory store.
Run with: pytest tests/test_services.py -v
"""

import uuid
from dataclasses import replace
from datetime import date, timedelta
from unittest.mock import patch

import pytest

from enrollment.domain import ConfirmationNumber, CourseId, Email, ParentProfile, PaymentStatus
from enrollment.domain.errors import (
    CapacityExceededError,
    ChildAgeOutOfRangeError,
    ConfirmationGenerationExhaustedError,
    CourseAlreadyStartedError,
    CourseNotFoundError,
    DiscountCodeNotFoundError,
    DiscountExpiredError,
    DiscountNotYetActiveError,
    DiscountUsageCapReachedError,
    InvalidCourseIdError,
    InvalidRegistrationIdError,
    RegistrationAlreadyCancelledError,
    RegistrationNotFoundError,
)
from enrollment.services import (
    CapacityGate,
    ConfirmationMinter,
    CourseService,
    DiscountLedger,
    EnrollmentService,
    IdentityResolver,
)

from conftest import NOW, SequenceRandom


@pytest.fixture
def service(uow, clock, enrollment_settings) -> EnrollmentService:
    return EnrollmentService(uow, clock=clock, settings=enrollment_settings)


class TestIdentityResolver:
    """Tests for IdentityResolver."""

    def test_creates_account_on_first_resolution(self, uow):
        profile = ParentProfile("Dana", "Rivera", "555-0100", "12 Elm St", "Springfield", "IL", "62701")
        account = IdentityResolver(uow.accounts).resolve(Email("dana@example.com"), profile)
        assert account.email == Email("dana@example.com")
        assert account.profile == profile

    def test_second_resolution_returns_first_account(self, uow):
        profile = ParentProfile("Dana", "Rivera", "555-0100", "12 Elm St", "Springfield", "IL", "62701")
        resolver = IdentityResolver(uow.accounts)
        first = resolver.resolve(Email("dana@example.com"), profile)
        second = resolver.resolve(Email("DANA@example.com"), profile)
        assert second.id == first.id

    def test_existing_account_is_not_overwritten(self, uow):
        original = ParentProfile("Dana", "Rivera", "555-0100", "12 Elm St", "Springfield", "IL", "62701")
        changed = replace(original, first_name="Danielle", phone="555-0999")
        resolver = IdentityResolver(uow.accounts)
        resolver.resolve(Email("dana@example.com"), original)
        account = resolver.resolve(Email("dana@example.com"), changed)
        assert account.profile == original


class TestCapacityGate:
    """Tests for CapacityGate."""

    def test_admits_when_seats_remain(self, uow, clock, course_factory):
        course = course_factory(capacity=2)
        admission = CapacityGate(uow.courses, clock).check_and_reserve(course.id)
        assert admission.available_spots == 2

    def test_unknown_course_raises_not_found(self, uow, clock):
        with pytest.raises(CourseNotFoundError):
            CapacityGate(uow.courses, clock).check_and_reserve(CourseId(uuid.uuid4()))

    def test_started_course_is_rejected(self, uow, clock, course_factory):
        course = course_factory(starts_in=timedelta(0))
        with pytest.raises(CourseAlreadyStartedError):
            CapacityGate(uow.courses, clock).check_and_reserve(course.id)

    def test_full_course_is_rejected(self, service, uow, clock, course_factory, submission_factory):
        course = course_factory(capacity=1)
        service.enroll(submission_factory(course.id))
        with pytest.raises(CapacityExceededError):
            CapacityGate(uow.courses, clock).check_and_reserve(course.id)

    def test_availability_excludes_cancelled_registrations(
        self, service, uow, clock, course_factory, submission_factory
    ):
        course = course_factory(capacity=3)
        kept = service.enroll(submission_factory(course.id, email="a@example.com"))
        dropped = service.enroll(submission_factory(course.id, email="b@example.com"))
        service.cancel_registration(str(dropped.registration_id))

        availability = CapacityGate(uow.courses, clock).availability(course.id)
        assert kept.registration_id != dropped.registration_id
        assert availability.committed_seats == 1
        assert availability.available_spots == 2
        assert availability.is_open

    def test_child_at_exact_min_age_is_admitted(
        self, uow, clock, course_factory, submission_factory
    ):
        course = course_factory(min_age=10, max_age=12)
        child = submission_factory(course.id, date_of_birth=date(2016, 6, 1)).child
        CapacityGate(uow.courses, clock).check_and_reserve(course.id, child=child)

    def test_child_at_exact_max_age_is_admitted(
        self, uow, clock, course_factory, submission_factory
    ):
        course = course_factory(min_age=7, max_age=10)
        child = submission_factory(course.id, date_of_birth=date(2016, 1, 15)).child
        CapacityGate(uow.courses, clock).check_and_reserve(course.id, child=child)

    def test_day_before_birthday_is_still_too_young(
        self, uow, clock, course_factory, submission_factory
    ):
        course = course_factory(min_age=10, max_age=12)
        child = submission_factory(course.id, date_of_birth=date(2016, 6, 2)).child
        with pytest.raises(ChildAgeOutOfRangeError) as excinfo:
            CapacityGate(uow.courses, clock).check_and_reserve(course.id, child=child)
        assert excinfo.value.message == (
            "Child's age must be between 10 and 12 years for this course"
        )

    def test_child_past_max_age_is_rejected(
        self, uow, clock, course_factory, submission_factory
    ):
        course = course_factory(min_age=7, max_age=9)
        child = submission_factory(course.id, date_of_birth=date(2016, 6, 1)).child
        with pytest.raises(ChildAgeOutOfRangeError):
            CapacityGate(uow.courses, clock).check_and_reserve(course.id, child=child)


class TestDiscountLedger:
    """Tests for DiscountLedger."""

    def test_validate_returns_details_without_mutation(self, uow, clock, discount_factory):
        discount = discount_factory(max_uses=5)
        details = DiscountLedger(uow.discounts, clock).validate("SUMMER10")
        assert details.id == discount.id
        assert details.code == "SUMMER10"
        assert uow.get_discount(discount.id).current_uses == 0

    def test_unknown_code_raises_not_found(self, uow, clock):
        with pytest.raises(DiscountCodeNotFoundError):
            DiscountLedger(uow.discounts, clock).validate("NOPE")

    def test_inactive_code_raises_not_found(self, uow, clock, discount_factory):
        discount_factory(is_active=False)
        with pytest.raises(DiscountCodeNotFoundError):
            DiscountLedger(uow.discounts, clock).validate("SUMMER10")

    def test_start_date_equal_to_now_is_eligible(self, uow, clock, discount_factory):
        discount_factory(starts_at=NOW)
        DiscountLedger(uow.discounts, clock).validate("SUMMER10")

    def test_start_date_in_future_is_not_yet_active(self, uow, clock, discount_factory):
        discount_factory(starts_at=NOW + timedelta(seconds=1))
        with pytest.raises(DiscountNotYetActiveError):
            DiscountLedger(uow.discounts, clock).validate("SUMMER10")

    def test_end_date_equal_to_now_is_expired(self, uow, clock, discount_factory):
        discount_factory(ends_at=NOW)
        with pytest.raises(DiscountExpiredError):
            DiscountLedger(uow.discounts, clock).validate("SUMMER10")

    def test_end_date_just_after_now_is_eligible(self, uow, clock, discount_factory):
        discount_factory(ends_at=NOW + timedelta(seconds=1))
        DiscountLedger(uow.discounts, clock).validate("SUMMER10")

    def test_validate_rejects_exhausted_code(self, uow, clock, discount_factory):
        discount_factory(max_uses=2, current_uses=2)
        with pytest.raises(DiscountUsageCapReachedError):
            DiscountLedger(uow.discounts, clock).validate("SUMMER10")

    def test_consume_once_then_cap_reached(self, uow, clock, discount_factory):
        discount = discount_factory(max_uses=1, current_uses=0)
        ledger = DiscountLedger(uow.discounts, clock)

        ledger.consume(discount.id)
        assert uow.get_discount(discount.id).current_uses == 1

        with pytest.raises(DiscountUsageCapReachedError):
            ledger.consume(discount.id)
        assert uow.get_discount(discount.id).current_uses == 1

    def test_consume_without_cap_is_unlimited(self, uow, clock, discount_factory):
        discount = discount_factory(max_uses=None)
        ledger = DiscountLedger(uow.discounts, clock)
        for _ in range(25):
            ledger.consume(discount.id)
        assert uow.get_discount(discount.id).current_uses == 25


class TestConfirmationMinter:
    """Tests for ConfirmationMinter."""

    def test_mints_prefix_and_six_digits(self, uow):
        number = ConfirmationMinter(uow.registrations).mint()
        assert number.value.startswith("RB")
        assert len(number.value) == 8
        assert 100000 <= int(number.value[2:]) <= 999999

    def test_regenerates_on_collision(self, uow):
        minter = ConfirmationMinter(uow.registrations, rng=SequenceRandom([111111, 222222]))
        with patch.object(
            uow.registrations,
            "confirmation_number_exists",
            side_effect=lambda number: number == "RB111111",
        ):
            assert minter.mint().value == "RB222222"

    def test_exhausted_after_max_attempts(self, uow):
        minter = ConfirmationMinter(
            uow.registrations, max_attempts=3, rng=SequenceRandom([111111] * 3)
        )
        with patch.object(uow.registrations, "confirmation_number_exists", return_value=True):
            with pytest.raises(ConfirmationGenerationExhaustedError):
                minter.mint()

    def test_rejects_non_positive_attempts(self, uow):
        with pytest.raises(ValueError):
            ConfirmationMinter(uow.registrations, max_attempts=0)


class TestEnrollmentService:
    """Tests for EnrollmentService.enroll and the registration lifecycle."""

    def test_enroll_persists_completed_registration(
        self, service, uow, course_factory, submission_factory
    ):
        course = course_factory()
        confirmation = service.enroll(submission_factory(course.id))

        registration = uow.registrations.get_registration(confirmation.registration_id)
        assert registration.confirmation_number == confirmation.confirmation_number
        assert registration.payment_status is PaymentStatus.COMPLETED
        assert registration.course_id == course.id
        assert registration.discount_code_id is None
        assert confirmation.course_id == course.id
        assert confirmation.parent_email == Email("parent@example.com")

    def test_enroll_applies_discount(
        self, service, uow, course_factory, discount_factory, submission_factory
    ):
        course = course_factory()
        discount = discount_factory(max_uses=1)
        confirmation = service.enroll(submission_factory(course.id, discount_code="SUMMER10"))

        registration = uow.registrations.get_registration(confirmation.registration_id)
        assert registration.discount_code_id == discount.id
        assert uow.get_discount(discount.id).current_uses == 1

    def test_same_parent_twice_reuses_account(
        self, service, uow, course_factory, submission_factory
    ):
        course = course_factory()
        first = service.enroll(submission_factory(course.id))
        second = service.enroll(submission_factory(course.id, first_name="Other"))

        a = uow.registrations.get_registration(first.registration_id)
        b = uow.registrations.get_registration(second.registration_id)
        assert a.parent_id == b.parent_id
        assert a.confirmation_number != b.confirmation_number

    def test_terms_not_agreed_is_rejected_before_persistence(
        self, service, uow, course_factory, submission_factory
    ):
        course = course_factory()
        submission = replace(submission_factory(course.id), agreed_to_terms=False)
        with pytest.raises(ValueError):
            service.enroll(submission)
        assert uow.accounts.get_by_email(Email("parent@example.com")) is None

    def test_capacity_rejection_creates_nothing(
        self, service, uow, course_factory, discount_factory, submission_factory
    ):
        course = course_factory(capacity=1)
        discount = discount_factory(max_uses=10)
        service.enroll(submission_factory(course.id, email="first@example.com"))

        with pytest.raises(CapacityExceededError):
            service.enroll(
                submission_factory(course.id, email="second@example.com", discount_code="SUMMER10")
            )
        assert uow.accounts.get_by_email(Email("second@example.com")) is None
        assert uow.get_discount(discount.id).current_uses == 0

    def test_discount_rejection_does_not_take_a_seat(
        self, service, uow, clock, course_factory, discount_factory, submission_factory
    ):
        course = course_factory(capacity=1)
        discount_factory(ends_at=NOW - timedelta(days=1))

        with pytest.raises(DiscountExpiredError):
            service.enroll(submission_factory(course.id, discount_code="SUMMER10"))

        assert uow.courses.count_committed_seats(course.id) == 0
        assert uow.accounts.get_by_email(Email("parent@example.com")) is None

    def test_failure_after_consume_rolls_back_discount_use(
        self, uow, clock, course_factory, discount_factory, submission_factory
    ):
        course = course_factory()
        discount = discount_factory(max_uses=1)
        service = EnrollmentService(uow, clock=clock)

        with patch.object(
            ConfirmationMinter, "mint", side_effect=ConfirmationGenerationExhaustedError()
        ):
            with pytest.raises(ConfirmationGenerationExhaustedError):
                service.enroll(submission_factory(course.id, discount_code="SUMMER10"))

        assert uow.get_discount(discount.id).current_uses == 0
        assert uow.accounts.get_by_email(Email("parent@example.com")) is None
        assert uow.courses.count_committed_seats(course.id) == 0

    def test_guarded_insert_rejects_when_seat_vanishes(
        self, service, uow, course_factory, submission_factory
    ):
        course = course_factory()
        with patch.object(uow.registrations, "insert_within_capacity", return_value=None):
            with pytest.raises(CapacityExceededError):
                service.enroll(submission_factory(course.id))
        assert uow.accounts.get_by_email(Email("parent@example.com")) is None

    def test_child_outside_age_range_creates_nothing(
        self, service, uow, course_factory, discount_factory, submission_factory
    ):
        course = course_factory(min_age=13, max_age=16)
        discount = discount_factory(max_uses=1)

        with pytest.raises(ChildAgeOutOfRangeError):
            service.enroll(submission_factory(course.id, discount_code="SUMMER10"))

        assert uow.courses.count_committed_seats(course.id) == 0
        assert uow.get_discount(discount.id).current_uses == 0
        assert uow.accounts.get_by_email(Email("parent@example.com")) is None

    def test_number_taken_at_insert_is_minted_again(
        self, service, uow, course_factory, submission_factory
    ):
        course = course_factory()
        first = service.enroll(submission_factory(course.id, email="a@example.com"))
        fresh = ConfirmationNumber("RB222222")

        with patch.object(
            ConfirmationMinter, "mint", side_effect=[first.confirmation_number, fresh]
        ):
            second = service.enroll(submission_factory(course.id, email="b@example.com"))

        assert second.confirmation_number == fresh
        assert uow.courses.count_committed_seats(course.id) == 2

    def test_numbers_always_taken_at_insert_exhaust_attempts(
        self, service, uow, course_factory, submission_factory
    ):
        course = course_factory()
        first = service.enroll(submission_factory(course.id, email="a@example.com"))

        with patch.object(ConfirmationMinter, "mint", return_value=first.confirmation_number):
            with pytest.raises(ConfirmationGenerationExhaustedError):
                service.enroll(submission_factory(course.id, email="b@example.com"))

        assert uow.courses.count_committed_seats(course.id) == 1
        assert uow.accounts.get_by_email(Email("b@example.com")) is None

    def test_get_registration_invalid_id_raises_error(self, service):
        with pytest.raises(InvalidRegistrationIdError):
            service.get_registration("not-a-uuid")

    def test_get_registration_not_found_raises_error(self, service):
        with pytest.raises(RegistrationNotFoundError):
            service.get_registration(str(uuid.uuid4()))

    def test_cancel_frees_seat(self, service, course_factory, submission_factory):
        course = course_factory(capacity=1)
        confirmation = service.enroll(submission_factory(course.id, email="a@example.com"))

        cancelled = service.cancel_registration(str(confirmation.registration_id))
        assert cancelled.payment_status is PaymentStatus.CANCELLED

        service.enroll(submission_factory(course.id, email="b@example.com"))

    def test_cancel_twice_raises_already_cancelled(
        self, service, course_factory, submission_factory
    ):
        course = course_factory()
        confirmation = service.enroll(submission_factory(course.id))
        service.cancel_registration(str(confirmation.registration_id))
        with pytest.raises(RegistrationAlreadyCancelledError):
            service.cancel_registration(str(confirmation.registration_id))

    def test_cancel_unknown_registration_raises_not_found(self, service):
        with pytest.raises(RegistrationNotFoundError):
            service.cancel_registration(str(uuid.uuid4()))


class TestCourseService:
    """Tests for CourseService."""

    def test_invalid_id_raises_error(self, uow, clock):
        with pytest.raises(InvalidCourseIdError):
            CourseService(uow, clock).get_availability("nope")

    def test_not_found_raises_error(self, uow, clock):
        with pytest.raises(CourseNotFoundError):
            CourseService(uow, clock).get_availability(str(uuid.uuid4()))

    def test_started_course_is_not_open(self, uow, clock, course_factory):
        course = course_factory(starts_in=-timedelta(days=1))
        availability = CourseService(uow, clock).get_availability(str(course.id))
        assert availability.available_spots == 10
        assert not availability.is_open
