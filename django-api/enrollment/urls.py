from django.urls import path

from enrollment.handlers import (
    CourseAvailabilityView,
    DiscountValidateView,
    RegistrationCancelView,
    RegistrationCreateView,
    RegistrationDetailView,
)

urlpatterns = [
    path("registrations", RegistrationCreateView.as_view(), name="registration-create"),
    path(
        "registrations/<str:registration_id>",
        RegistrationDetailView.as_view(),
        name="registration-detail",
    ),
    path(
        "registrations/<str:registration_id>/cancel",
        RegistrationCancelView.as_view(),
        name="registration-cancel",
    ),
    path("discounts/validate", DiscountValidateView.as_view(), name="discount-validate"),
    path(
        "courses/<str:course_id>/availability",
        CourseAvailabilityView.as_view(),
        name="course-availability",
    ),
]
