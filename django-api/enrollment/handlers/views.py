"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging
from typing import Any

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from enrollment.domain.errors import DomainError, ErrorCode
from enrollment.handlers.serializers import (
    CourseAvailabilitySerializer,
    DiscountCodeInputSerializer,
    DiscountDetailsSerializer,
    EnrollmentConfirmationSerializer,
    RegistrationSerializer,
    RegistrationSubmissionSerializer,
)
from enrollment.services import CourseService, EnrollmentService
from enrollment.stores.django_store import DjangoUnitOfWork

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.INVALID_COURSE_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_REGISTRATION_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.COURSE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.REGISTRATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DISCOUNT_CODE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorCode.COURSE_ALREADY_STARTED: status.HTTP_409_CONFLICT,
    ErrorCode.CHILD_AGE_OUT_OF_RANGE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.REGISTRATION_ALREADY_CANCELLED: status.HTTP_409_CONFLICT,
    ErrorCode.DISCOUNT_NOT_YET_ACTIVE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.DISCOUNT_EXPIRED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.DISCOUNT_USAGE_CAP_REACHED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONFIRMATION_GENERATION_EXHAUSTED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.STORAGE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_enrollment_service() -> EnrollmentService:
    return EnrollmentService(DjangoUnitOfWork())


def get_course_service() -> CourseService:
    return CourseService(DjangoUnitOfWork())


def error_response(error: DomainError) -> Response:
    status_code = ERROR_STATUS.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error("Request failed with %s", error.code.value)
    return Response(
        {"code": error.code.value, "message": error.message}, status=status_code
    )


def validation_error_response(errors: Any) -> Response:
    return Response(
        {"message": _first_message(errors) or "Invalid request", "errors": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


def _first_message(errors: Any) -> str | None:
    if isinstance(errors, dict):
        for field, value in errors.items():
            message = _first_message(value)
            if message:
                return message if field == "non_field_errors" else f"{field}: {message}"
    elif isinstance(errors, list):
        for value in errors:
            message = _first_message(value)
            if message:
                return message
    elif errors:
        return str(errors)
    return None


class RegistrationCreateView(APIView):
    """Handler for POST /api/registrations"""

    def post(self, request: Request) -> Response:
        serializer = RegistrationSubmissionSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        try:
            confirmation = get_enrollment_service().enroll(serializer.to_submission())
        except DomainError as error:
            return error_response(error)

        return Response(
            EnrollmentConfirmationSerializer(confirmation).data,
            status=status.HTTP_201_CREATED,
        )


class RegistrationDetailView(APIView):
    """Handler for GET /api/registrations/{registration_id}"""

    def get(self, request: Request, registration_id: str) -> Response:
        try:
            registration = get_enrollment_service().get_registration(registration_id)
        except DomainError as error:
            return error_response(error)
        return Response(RegistrationSerializer(registration).data)


class RegistrationCancelView(APIView):
    """Handler for POST /api/registrations/{registration_id}/cancel"""

    def post(self, request: Request, registration_id: str) -> Response:
        try:
            registration = get_enrollment_service().cancel_registration(registration_id)
        except DomainError as error:
            return error_response(error)
        return Response(
            {
                "id": str(registration.id),
                "status": registration.payment_status.value,
                "message": "Registration cancelled successfully",
            }
        )


class DiscountValidateView(APIView):
    """Handler for POST /api/discounts/validate"""

    def post(self, request: Request) -> Response:
        serializer = DiscountCodeInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        try:
            details = get_enrollment_service().validate_discount(
                serializer.validated_data["code"]
            )
        except DomainError as error:
            return error_response(error)
        return Response(DiscountDetailsSerializer(details).data)


class CourseAvailabilityView(APIView):
    """Handler for GET /api/courses/{course_id}/availability"""

    def get(self, request: Request, course_id: str) -> Response:
        try:
            availability = get_course_service().get_availability(course_id)
        except DomainError as error:
            return error_response(error)
        return Response(CourseAvailabilitySerializer(availability).data)
