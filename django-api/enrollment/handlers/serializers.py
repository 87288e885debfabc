"""Serializers for request validation and domain model responses.

Input serializers validate the registration payload before the service runs
and convert it into a RegistrationSubmission. Output serializers read domain
models and render the camelCase API shape.
"""

from decimal import Decimal

from rest_framework import serializers

from enrollment.domain import (
    ChildInfo,
    CourseId,
    Email,
    EmergencyContact,
    Money,
    ParentProfile,
)
from enrollment.services import RegistrationSubmission


class ParentInfoSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=254)
    firstName = serializers.CharField(max_length=100)
    lastName = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=30)
    address = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    zipCode = serializers.CharField(max_length=20)


class ChildInfoSerializer(serializers.Serializer):
    firstName = serializers.CharField(max_length=100)
    lastName = serializers.CharField(max_length=100)
    dateOfBirth = serializers.DateField()
    gradeLevel = serializers.CharField(max_length=50)
    allergies = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=""
    )
    specialNeeds = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=""
    )


class EmergencyContactSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    relationship = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=30)


class DiscountCodeInputSerializer(serializers.Serializer):
    code = serializers.CharField(
        max_length=50,
        trim_whitespace=True,
        error_messages={
            "required": "Discount code is required",
            "blank": "Discount code is required",
        },
    )


class RegistrationSubmissionSerializer(serializers.Serializer):
    """Validates POST /api/registrations bodies."""

    parentInfo = ParentInfoSerializer()
    childInfo = ChildInfoSerializer()
    emergencyContact = EmergencyContactSerializer()
    selectedCourseId = serializers.UUIDField()
    agreedToTerms = serializers.BooleanField()
    photoRelease = serializers.BooleanField()
    discountCode = DiscountCodeInputSerializer(required=False, allow_null=True)
    amountPaid = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0")
    )

    def validate_agreedToTerms(self, value: bool) -> bool:
        if not value:
            raise serializers.ValidationError("You must agree to the terms and conditions")
        return value

    def to_submission(self) -> RegistrationSubmission:
        data = self.validated_data
        parent = data["parentInfo"]
        child = data["childInfo"]
        contact = data["emergencyContact"]
        discount = data.get("discountCode")
        return RegistrationSubmission(
            parent_email=Email(parent["email"]),
            parent_profile=ParentProfile(
                first_name=parent["firstName"],
                last_name=parent["lastName"],
                phone=parent["phone"],
                address=parent["address"],
                city=parent["city"],
                state=parent["state"],
                zip_code=parent["zipCode"],
            ),
            child=ChildInfo(
                first_name=child["firstName"],
                last_name=child["lastName"],
                date_of_birth=child["dateOfBirth"],
                grade_level=child["gradeLevel"],
                allergies=child.get("allergies") or "",
                special_needs=child.get("specialNeeds") or "",
            ),
            emergency_contact=EmergencyContact(
                name=contact["name"],
                relationship=contact["relationship"],
                phone=contact["phone"],
            ),
            course_id=CourseId(data["selectedCourseId"]),
            agreed_to_terms=data["agreedToTerms"],
            photo_release=data["photoRelease"],
            amount_paid=Money(data["amountPaid"]),
            discount_code=discount["code"] if discount else None,
        )


class EnrollmentConfirmationSerializer(serializers.Serializer):
    """Serializer for EnrollmentConfirmation."""

    confirmationNumber = serializers.CharField(source="confirmation_number")
    courseId = serializers.CharField(source="course_id")
    registrationId = serializers.CharField(source="registration_id")
    parentEmail = serializers.CharField(source="parent_email")


class ChildInfoOutputSerializer(serializers.Serializer):
    firstName = serializers.CharField(source="first_name")
    lastName = serializers.CharField(source="last_name")
    dateOfBirth = serializers.DateField(source="date_of_birth")
    gradeLevel = serializers.CharField(source="grade_level")
    allergies = serializers.CharField()
    specialNeeds = serializers.CharField(source="special_needs")


class EmergencyContactOutputSerializer(serializers.Serializer):
    name = serializers.CharField()
    relationship = serializers.CharField()
    phone = serializers.CharField()


class RegistrationSerializer(serializers.Serializer):
    """Serializer for Registration domain model."""

    id = serializers.CharField()
    confirmationNumber = serializers.CharField(source="confirmation_number")
    courseId = serializers.CharField(source="course_id")
    parentId = serializers.CharField(source="parent_id")
    childInfo = ChildInfoOutputSerializer(source="child")
    emergencyContact = EmergencyContactOutputSerializer(source="emergency_contact")
    agreedToTerms = serializers.BooleanField(source="agreed_to_terms")
    photoRelease = serializers.BooleanField(source="photo_release")
    discountCodeId = serializers.CharField(source="discount_code_id", allow_null=True)
    amountPaid = serializers.DecimalField(
        source="amount_paid.amount", max_digits=10, decimal_places=2
    )
    paymentStatus = serializers.CharField(source="payment_status.value")
    createdAt = serializers.DateTimeField(source="created_at")


class DiscountDetailsSerializer(serializers.Serializer):
    """Serializer for DiscountDetails."""

    id = serializers.CharField()
    code = serializers.CharField()
    description = serializers.CharField()
    discountPercentage = serializers.DecimalField(
        source="discount_percentage.value",
        max_digits=5,
        decimal_places=2,
        coerce_to_string=False,
    )


class CourseAvailabilitySerializer(serializers.Serializer):
    """Serializer for CourseAvailability."""

    courseId = serializers.CharField(source="course_id")
    capacity = serializers.IntegerField()
    committedSeats = serializers.IntegerField(source="committed_seats")
    availableSpots = serializers.IntegerField(source="available_spots")
    isOpen = serializers.BooleanField(source="is_open")
