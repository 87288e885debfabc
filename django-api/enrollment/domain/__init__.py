from enrollment.domain.models import (
    ChildInfo,
    Course,
    DiscountCode,
    EmergencyContact,
    NewRegistration,
    ParentAccount,
    ParentProfile,
    PaymentStatus,
    Registration,
)
from enrollment.domain.value_objects import (
    Capacity,
    ConfirmationNumber,
    CourseId,
    DiscountCodeId,
    EligibilityWindow,
    Email,
    Money,
    ParentAccountId,
    Percentage,
    RegistrationId,
)

__all__ = [
    "ChildInfo",
    "Course",
    "DiscountCode",
    "EmergencyContact",
    "NewRegistration",
    "ParentAccount",
    "ParentProfile",
    "PaymentStatus",
    "Registration",
    "Capacity",
    "ConfirmationNumber",
    "CourseId",
    "DiscountCodeId",
    "EligibilityWindow",
    "Email",
    "Money",
    "ParentAccountId",
    "Percentage",
    "RegistrationId",
]
