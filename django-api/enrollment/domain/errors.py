"""Domain error codes for the enrollment module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_COURSE_ID = "INVALID_COURSE_ID"
    INVALID_REGISTRATION_ID = "INVALID_REGISTRATION_ID"
    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    DISCOUNT_CODE_NOT_FOUND = "DISCOUNT_CODE_NOT_FOUND"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    COURSE_ALREADY_STARTED = "COURSE_ALREADY_STARTED"
    CHILD_AGE_OUT_OF_RANGE = "CHILD_AGE_OUT_OF_RANGE"
    REGISTRATION_ALREADY_CANCELLED = "REGISTRATION_ALREADY_CANCELLED"
    DISCOUNT_NOT_YET_ACTIVE = "DISCOUNT_NOT_YET_ACTIVE"
    DISCOUNT_EXPIRED = "DISCOUNT_EXPIRED"
    DISCOUNT_USAGE_CAP_REACHED = "DISCOUNT_USAGE_CAP_REACHED"
    CONFIRMATION_GENERATION_EXHAUSTED = "CONFIRMATION_GENERATION_EXHAUSTED"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidCourseIdError(DomainError):
    """Raised when a course ID is invalid."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_COURSE_ID,
            message="Invalid course ID format",
        )


class InvalidRegistrationIdError(DomainError):
    """Raised when a registration ID is invalid."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_REGISTRATION_ID,
            message="Invalid registration ID format",
        )


class CourseNotFoundError(DomainError):
    """Raised when a course is not found."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.COURSE_NOT_FOUND,
            message="Course not found",
        )


class RegistrationNotFoundError(DomainError):
    """Raised when a registration is not found."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.REGISTRATION_NOT_FOUND,
            message="Registration not found",
        )


class DiscountCodeNotFoundError(DomainError):
    """Raised when a discount code does not exist or is inactive."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DISCOUNT_CODE_NOT_FOUND,
            message="Invalid or expired discount code",
        )


class CapacityExceededError(DomainError):
    """Raised when a course has no seats left."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_EXCEEDED,
            message="Course is full",
        )


class CourseAlreadyStartedError(DomainError):
    """Raised when enrolling into a course that has already begun."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.COURSE_ALREADY_STARTED,
            message="Course has already started",
        )


class ChildAgeOutOfRangeError(DomainError):
    """Raised when the child's age falls outside the course age bounds."""

    def __init__(self, min_age: int | None, max_age: int | None) -> None:
        if min_age is not None and max_age is not None:
            message = f"Child's age must be between {min_age} and {max_age} years for this course"
        elif min_age is not None:
            message = f"Child must be at least {min_age} years old for this course"
        else:
            message = f"Child must be at most {max_age} years old for this course"
        super().__init__(code=ErrorCode.CHILD_AGE_OUT_OF_RANGE, message=message)


class RegistrationAlreadyCancelledError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.REGISTRATION_ALREADY_CANCELLED,
            message="Registration is already cancelled",
        )


class DiscountNotYetActiveError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DISCOUNT_NOT_YET_ACTIVE,
            message="Discount code is not yet active",
        )


class DiscountExpiredError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DISCOUNT_EXPIRED,
            message="Discount code has expired",
        )


class DiscountUsageCapReachedError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DISCOUNT_USAGE_CAP_REACHED,
            message="Discount code has reached maximum uses",
        )


class ConfirmationGenerationExhaustedError(DomainError):
    """Raised when no unused confirmation number was found within the retry budget."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.CONFIRMATION_GENERATION_EXHAUSTED,
            message="Could not generate a confirmation number, please retry",
        )


class StorageUnavailableError(DomainError):
    """Raised when the backing store fails; nothing from the transaction is applied."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.STORAGE_UNAVAILABLE,
            message="Registration service is temporarily unavailable",
        )
