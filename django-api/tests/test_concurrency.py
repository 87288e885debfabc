"""Concurrency tests for seat and discount accounting.

Worker threads each open their own database connection, so these tests run
with transaction=True against the file-backed test database.
Run with: pytest tests/test_concurrency.py -v
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from django.db import connections

from enrollment import models
from enrollment.domain import CourseId, DiscountCodeId
from enrollment.domain.errors import CapacityExceededError, DiscountUsageCapReachedError, DomainError
from enrollment.services import DiscountLedger, EnrollmentConfirmation, EnrollmentService
from enrollment.stores.django_store import DjangoUnitOfWork


def run_concurrently(count: int, task):
    """Run task(index) on count threads released together by a barrier."""
    barrier = threading.Barrier(count)

    def worker(index: int):
        try:
            barrier.wait()
            return task(index)
        except DomainError as error:
            return error
        finally:
            connections.close_all()

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(worker, range(count)))


@pytest.mark.django_db(transaction=True)
class TestConcurrentEnrollment:
    def test_exactly_capacity_submissions_succeed(self, db_course_factory, submission_factory):
        course = db_course_factory(capacity=3)
        service = EnrollmentService(DjangoUnitOfWork())

        results = run_concurrently(
            8,
            lambda i: service.enroll(
                submission_factory(CourseId(course.id), email=f"parent{i}@example.com")
            ),
        )

        succeeded = [r for r in results if isinstance(r, EnrollmentConfirmation)]
        rejected = [r for r in results if isinstance(r, CapacityExceededError)]
        assert len(succeeded) == 3
        assert len(rejected) == 5
        assert models.Registration.objects.filter(course=course).count() == 3
        numbers = {r.confirmation_number.value for r in succeeded}
        assert len(numbers) == 3

    def test_last_seat_race_has_one_winner(self, db_course_factory, submission_factory):
        course = db_course_factory(capacity=1)
        service = EnrollmentService(DjangoUnitOfWork())

        results = run_concurrently(
            2,
            lambda i: service.enroll(
                submission_factory(CourseId(course.id), email=f"parent{i}@example.com")
            ),
        )

        assert sum(isinstance(r, EnrollmentConfirmation) for r in results) == 1
        assert sum(isinstance(r, CapacityExceededError) for r in results) == 1
        assert models.Registration.objects.filter(course=course).count() == 1

    def test_same_parent_racing_gets_one_account(self, db_course_factory, submission_factory):
        course = db_course_factory(capacity=10)
        service = EnrollmentService(DjangoUnitOfWork())

        results = run_concurrently(
            4, lambda i: service.enroll(submission_factory(CourseId(course.id)))
        )

        assert all(isinstance(r, EnrollmentConfirmation) for r in results)
        assert models.ParentAccount.objects.count() == 1
        assert models.Registration.objects.filter(course=course).count() == 4


@pytest.mark.django_db(transaction=True)
class TestConcurrentDiscountUse:
    def test_cap_holds_under_concurrent_consume(self, db_discount_factory):
        max_uses = 3
        row = db_discount_factory(max_uses=max_uses)
        uow = DjangoUnitOfWork()

        def consume(_index: int) -> bool:
            with uow.atomic() as tx:
                DiscountLedger(tx.discounts).consume(DiscountCodeId(row.id))
            return True

        results = run_concurrently(max_uses + 5, consume)

        assert results.count(True) == max_uses
        assert sum(isinstance(r, DiscountUsageCapReachedError) for r in results) == 5
        row.refresh_from_db()
        assert row.current_uses == max_uses

    def test_enrollments_share_a_single_use_code(
        self, db_course_factory, db_discount_factory, submission_factory
    ):
        course = db_course_factory(capacity=10)
        row = db_discount_factory(max_uses=1)
        service = EnrollmentService(DjangoUnitOfWork())

        results = run_concurrently(
            4,
            lambda i: service.enroll(
                submission_factory(
                    CourseId(course.id), email=f"parent{i}@example.com", discount_code="SUMMER10"
                )
            ),
        )

        assert sum(isinstance(r, EnrollmentConfirmation) for r in results) == 1
        assert sum(isinstance(r, DiscountUsageCapReachedError) for r in results) == 3
        row.refresh_from_db()
        assert row.current_uses == 1
        assert models.Registration.objects.filter(course=course).count() == 1


class TestInMemoryConcurrency:
    """The in-memory store gives the same guarantees with a process lock."""

    def test_capacity_holds(self, uow, clock, course_factory, submission_factory):
        course = course_factory(capacity=5)
        service = EnrollmentService(uow, clock=clock)

        results = run_concurrently(
            12,
            lambda i: service.enroll(submission_factory(course.id, email=f"p{i}@example.com")),
        )

        assert sum(isinstance(r, EnrollmentConfirmation) for r in results) == 5
        assert uow.courses.count_committed_seats(course.id) == 5
