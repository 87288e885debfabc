"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models
from django.db.models import F, Q
from django.db.models.functions import Lower


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


COMMITTED_STATUSES = (PaymentStatus.PENDING, PaymentStatus.COMPLETED)


class ParentAccount(models.Model):
    """Persistence model for parent accounts."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(max_length=254, unique=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=30)
    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    zip_code = models.CharField(max_length=20)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["email"]
        constraints = [
            models.UniqueConstraint(Lower("email"), name="parent_email_ci_unique"),
        ]

    def __str__(self) -> str:
        return self.email

    def save(self, *args, **kwargs):
        self.email = self.email.strip().lower()
        super().save(*args, **kwargs)


class Course(models.Model):
    """Persistence model for courses."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    capacity = models.PositiveIntegerField()
    start_date = models.DateTimeField()
    end_date = models.DateTimeField(blank=True, null=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    min_age = models.PositiveSmallIntegerField(blank=True, null=True)
    max_age = models.PositiveSmallIntegerField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["start_date"]
        constraints = [
            models.CheckConstraint(
                condition=Q(capacity__gt=0), name="course_capacity_positive"
            ),
            models.CheckConstraint(
                condition=Q(min_age__isnull=True)
                | Q(max_age__isnull=True)
                | Q(max_age__gte=F("min_age")),
                name="course_age_range_ordered",
            ),
        ]

    def __str__(self) -> str:
        return self.title


class DiscountCode(models.Model):
    """Persistence model for discount codes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=255, blank=True)
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    is_active = models.BooleanField(default=True)
    start_date = models.DateTimeField(blank=True, null=True)
    end_date = models.DateTimeField(blank=True, null=True)
    max_uses = models.PositiveIntegerField(blank=True, null=True)
    current_uses = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["code"]
        constraints = [
            models.CheckConstraint(
                condition=Q(max_uses__isnull=True) | Q(current_uses__lte=F("max_uses")),
                name="discount_uses_within_cap",
            ),
            models.CheckConstraint(
                condition=Q(discount_percentage__gte=0) & Q(discount_percentage__lte=100),
                name="discount_percentage_range",
            ),
        ]

    def __str__(self) -> str:
        return self.code


class Registration(models.Model):
    """Persistence model for course registrations."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    confirmation_number = models.CharField(max_length=32, unique=True)
    parent = models.ForeignKey(
        ParentAccount, on_delete=models.PROTECT, related_name="registrations"
    )
    course = models.ForeignKey(
        Course, on_delete=models.PROTECT, related_name="registrations"
    )
    child_first_name = models.CharField(max_length=100)
    child_last_name = models.CharField(max_length=100)
    child_date_of_birth = models.DateField()
    child_grade_level = models.CharField(max_length=50)
    child_allergies = models.TextField(blank=True, default="")
    child_special_needs = models.TextField(blank=True, default="")
    emergency_contact_name = models.CharField(max_length=200)
    emergency_contact_relation = models.CharField(max_length=100)
    emergency_contact_phone = models.CharField(max_length=30)
    agreed_to_terms = models.BooleanField()
    photo_release = models.BooleanField(default=False)
    discount_code = models.ForeignKey(
        DiscountCode,
        on_delete=models.PROTECT,
        related_name="registrations",
        blank=True,
        null=True,
    )
    amount_paid = models.DecimalField(max_digits=10, decimal_places=2)
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["course", "payment_status"], name="registration_course_status"
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount_paid__gte=0), name="registration_amount_non_negative"
            ),
            models.CheckConstraint(
                condition=Q(agreed_to_terms=True), name="registration_terms_agreed"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.confirmation_number} - {self.child_first_name} {self.child_last_name}"
