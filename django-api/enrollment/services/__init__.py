from enrollment.services.capacity import Admission, CapacityGate, CourseAvailability
from enrollment.services.confirmation import ConfirmationMinter
from enrollment.services.course_service import CourseService
from enrollment.services.discounts import DiscountDetails, DiscountLedger
from enrollment.services.enrollment_service import (
    EnrollmentConfirmation,
    EnrollmentService,
    EnrollmentState,
    RegistrationSubmission,
)
from enrollment.services.identity import IdentityResolver

__all__ = [
    "Admission",
    "CapacityGate",
    "ConfirmationMinter",
    "CourseAvailability",
    "CourseService",
    "DiscountDetails",
    "DiscountLedger",
    "EnrollmentConfirmation",
    "EnrollmentService",
    "EnrollmentState",
    "IdentityResolver",
    "RegistrationSubmission",
]
