"""Django ORM implementation of the enrollment stores.

Capacity and discount counters are guarded inside the database:
the course row is locked with SELECT ... FOR UPDATE before the seat count
(SQLite ignores the lock but runs every transaction as BEGIN IMMEDIATE, see
config/settings.py), and discount uses are bumped with a conditional UPDATE.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from enrollment import models
from enrollment.domain import (
    Capacity,
    ChildInfo,
    ConfirmationNumber,
    Course,
    CourseId,
    DiscountCode,
    DiscountCodeId,
    EligibilityWindow,
    Email,
    EmergencyContact,
    Money,
    NewRegistration,
    ParentAccount,
    ParentAccountId,
    ParentProfile,
    PaymentStatus,
    Percentage,
    Registration,
    RegistrationId,
)
from enrollment.domain.errors import StorageUnavailableError
from enrollment.stores.interfaces import (
    AccountStore,
    ConfirmationNumberConflict,
    CourseStore,
    DiscountStore,
    RegistrationStore,
    UnitOfWork,
)

logger = logging.getLogger(__name__)


def _to_account(row: models.ParentAccount) -> ParentAccount:
    return ParentAccount(
        id=ParentAccountId(row.id),
        email=Email(row.email),
        profile=ParentProfile(
            first_name=row.first_name,
            last_name=row.last_name,
            phone=row.phone,
            address=row.address,
            city=row.city,
            state=row.state,
            zip_code=row.zip_code,
        ),
        created_at=row.created_at,
    )


def _to_course(row: models.Course) -> Course:
    return Course(
        id=CourseId(row.id),
        title=row.title,
        capacity=Capacity(row.capacity),
        start_date=row.start_date,
        end_date=row.end_date,
        price=Money(row.price),
        min_age=row.min_age,
        max_age=row.max_age,
    )


def _to_discount(row: models.DiscountCode) -> DiscountCode:
    return DiscountCode(
        id=DiscountCodeId(row.id),
        code=row.code,
        description=row.description,
        discount_percentage=Percentage(row.discount_percentage),
        is_active=row.is_active,
        window=EligibilityWindow(starts_at=row.start_date, ends_at=row.end_date),
        max_uses=row.max_uses,
        current_uses=row.current_uses,
    )


def _to_registration(row: models.Registration) -> Registration:
    return Registration(
        id=RegistrationId(row.id),
        confirmation_number=ConfirmationNumber(row.confirmation_number),
        parent_id=ParentAccountId(row.parent_id),
        course_id=CourseId(row.course_id),
        child=ChildInfo(
            first_name=row.child_first_name,
            last_name=row.child_last_name,
            date_of_birth=row.child_date_of_birth,
            grade_level=row.child_grade_level,
            allergies=row.child_allergies,
            special_needs=row.child_special_needs,
        ),
        emergency_contact=EmergencyContact(
            name=row.emergency_contact_name,
            relationship=row.emergency_contact_relation,
            phone=row.emergency_contact_phone,
        ),
        agreed_to_terms=row.agreed_to_terms,
        photo_release=row.photo_release,
        discount_code_id=DiscountCodeId(row.discount_code_id) if row.discount_code_id else None,
        amount_paid=Money(row.amount_paid),
        payment_status=PaymentStatus(row.payment_status),
        created_at=row.created_at,
    )


def _registration_fields(new: NewRegistration) -> dict:
    return {
        "confirmation_number": new.confirmation_number.value,
        "parent_id": new.parent_id.value,
        "child_first_name": new.child.first_name,
        "child_last_name": new.child.last_name,
        "child_date_of_birth": new.child.date_of_birth,
        "child_grade_level": new.child.grade_level,
        "child_allergies": new.child.allergies,
        "child_special_needs": new.child.special_needs,
        "emergency_contact_name": new.emergency_contact.name,
        "emergency_contact_relation": new.emergency_contact.relationship,
        "emergency_contact_phone": new.emergency_contact.phone,
        "agreed_to_terms": new.agreed_to_terms,
        "photo_release": new.photo_release,
        "discount_code_id": new.discount_code_id.value if new.discount_code_id else None,
        "amount_paid": new.amount_paid.amount,
        "payment_status": new.payment_status.value,
    }


class DjangoAccountStore(AccountStore):
    """Parent accounts backed by the ORM."""

    def get_by_email(self, email: Email) -> ParentAccount | None:
        row = models.ParentAccount.objects.filter(email__iexact=email.value).first()
        return _to_account(row) if row else None

    def get_or_create(
        self, email: Email, profile: ParentProfile
    ) -> tuple[ParentAccount, bool]:
        # get_or_create re-reads the row when a concurrent insert wins the
        # case-insensitive unique constraint on email.
        row, created = models.ParentAccount.objects.get_or_create(
            email__iexact=email.value,
            defaults={
                "email": email.value,
                "first_name": profile.first_name,
                "last_name": profile.last_name,
                "phone": profile.phone,
                "address": profile.address,
                "city": profile.city,
                "state": profile.state,
                "zip_code": profile.zip_code,
            },
        )
        return _to_account(row), created


class DjangoCourseStore(CourseStore):
    """Courses backed by the ORM."""

    def get_course(self, course_id: CourseId, *, lock: bool = False) -> Course | None:
        queryset = models.Course.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        row = queryset.filter(pk=course_id.value).first()
        return _to_course(row) if row else None

    def count_committed_seats(self, course_id: CourseId) -> int:
        return models.Registration.objects.filter(
            course_id=course_id.value,
            payment_status__in=models.COMMITTED_STATUSES,
        ).count()


class DjangoDiscountStore(DiscountStore):
    """Discount codes backed by the ORM."""

    def get_by_code(self, code: str) -> DiscountCode | None:
        row = models.DiscountCode.objects.filter(code=code).first()
        return _to_discount(row) if row else None

    def increment_uses_if_below_cap(self, discount_id: DiscountCodeId) -> bool:
        updated = (
            models.DiscountCode.objects.filter(pk=discount_id.value)
            .filter(Q(max_uses__isnull=True) | Q(current_uses__lt=F("max_uses")))
            .update(current_uses=F("current_uses") + 1)
        )
        return updated == 1


class DjangoRegistrationStore(RegistrationStore):
    """Registrations backed by the ORM."""

    def confirmation_number_exists(self, confirmation_number: str) -> bool:
        return models.Registration.objects.filter(
            confirmation_number=confirmation_number
        ).exists()

    def insert_within_capacity(self, new: NewRegistration) -> Registration | None:
        with transaction.atomic():
            course = models.Course.objects.select_for_update().get(pk=new.course_id.value)
            committed = models.Registration.objects.filter(
                course=course, payment_status__in=models.COMMITTED_STATUSES
            ).count()
            if committed >= course.capacity:
                return None

            # The savepoint keeps the course lock usable after a unique
            # violation on confirmation_number.
            try:
                with transaction.atomic():
                    row = models.Registration.objects.create(
                        course=course, **_registration_fields(new)
                    )
            except IntegrityError as exc:
                if self.confirmation_number_exists(new.confirmation_number.value):
                    raise ConfirmationNumberConflict(new.confirmation_number.value) from exc
                raise
        return _to_registration(row)

    def get_registration(self, registration_id: RegistrationId) -> Registration | None:
        row = models.Registration.objects.filter(pk=registration_id.value).first()
        return _to_registration(row) if row else None

    def transition_status(
        self,
        registration_id: RegistrationId,
        from_statuses: frozenset[PaymentStatus],
        to_status: PaymentStatus,
    ) -> Registration | None:
        updated = models.Registration.objects.filter(
            pk=registration_id.value,
            payment_status__in=[status.value for status in from_statuses],
        ).update(payment_status=to_status.value, updated_at=timezone.now())
        if not updated:
            return None
        return self.get_registration(registration_id)


class DjangoUnitOfWork(UnitOfWork):
    """Unit of work over the default Django database connection."""

    def __init__(self) -> None:
        self.accounts = DjangoAccountStore()
        self.courses = DjangoCourseStore()
        self.discounts = DjangoDiscountStore()
        self.registrations = DjangoRegistrationStore()

    @contextmanager
    def atomic(self) -> Iterator["DjangoUnitOfWork"]:
        try:
            with transaction.atomic():
                yield self
        except DatabaseError as exc:
            logger.exception("Database error, transaction rolled back")
            raise StorageUnavailableError() from exc

    @contextmanager
    def read_only(self) -> Iterator["DjangoUnitOfWork"]:
        # Autocommit reads; no BEGIN IMMEDIATE, so the SQLite write lock is not taken.
        try:
            yield self
        except DatabaseError as exc:
            logger.exception("Database error during read")
            raise StorageUnavailableError() from exc
