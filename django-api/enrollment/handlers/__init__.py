from enrollment.handlers.views import (
    CourseAvailabilityView,
    DiscountValidateView,
    RegistrationCancelView,
    RegistrationCreateView,
    RegistrationDetailView,
)

__all__ = [
    "CourseAvailabilityView",
    "DiscountValidateView",
    "RegistrationCancelView",
    "RegistrationCreateView",
    "RegistrationDetailView",
]
