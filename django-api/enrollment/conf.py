"""App settings read from django.conf.settings.ENROLLMENT."""

from dataclasses import dataclass
from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "CONFIRMATION_PREFIX": "RB",
    "CONFIRMATION_DIGITS": 6,
    "CONFIRMATION_MAX_ATTEMPTS": 5,
}


@dataclass(frozen=True)
class EnrollmentSettings:
    confirmation_prefix: str
    confirmation_digits: int
    confirmation_max_attempts: int


def get_enrollment_settings() -> EnrollmentSettings:
    """Return ENROLLMENT settings merged over the defaults."""
    configured = {**DEFAULTS, **getattr(settings, "ENROLLMENT", {})}
    return EnrollmentSettings(
        confirmation_prefix=str(configured["CONFIRMATION_PREFIX"]),
        confirmation_digits=int(configured["CONFIRMATION_DIGITS"]),
        confirmation_max_attempts=int(configured["CONFIRMATION_MAX_ATTEMPTS"]),
    )
