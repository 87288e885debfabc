"""Domain primitives that enforce validity at creation time."""

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Self
from uuid import UUID


@dataclass(frozen=True)
class CourseId:
    """Unique identifier for a Course."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ParentAccountId:
    """Unique identifier for a ParentAccount."""

    value: UUID

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class DiscountCodeId:
    """Unique identifier for a DiscountCode."""

    value: UUID

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class RegistrationId:
    """Unique identifier for a Registration."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Email:
    """Email address used as the parent account identity key.

    Stored lower-cased so lookups are case-insensitive.
    """

    value: str

    def __post_init__(self) -> None:
        normalized = self.value.strip().lower()
        if "@" not in normalized:
            raise ValueError("Email must contain '@'")
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")
        object.__setattr__(
            self, "amount", Decimal(self.amount).quantize(Decimal("0.01"), ROUND_HALF_UP)
        )

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class Capacity:
    """Positive integer seat count for a course."""

    value: int

    def __post_init__(self) -> None:
        if self.value <= 0:
            raise ValueError("Capacity must be positive")


@dataclass(frozen=True)
class Percentage:
    """Discount percentage between 0 and 100."""

    value: Decimal

    def __post_init__(self) -> None:
        if not Decimal(0) <= self.value <= Decimal(100):
            raise ValueError("Percentage must be between 0 and 100")

    def __str__(self) -> str:
        return f"{self.value:.2f}"


@dataclass(frozen=True)
class EligibilityWindow:
    """Half-open time window [starts_at, ends_at).

    Either bound may be None, meaning unbounded on that side.
    """

    starts_at: datetime | None = None
    ends_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.starts_at and self.ends_at and self.ends_at < self.starts_at:
            raise ValueError("Window end must not precede its start")

    def has_started(self, now: datetime) -> bool:
        return self.starts_at is None or self.starts_at <= now

    def has_ended(self, now: datetime) -> bool:
        return self.ends_at is not None and now >= self.ends_at

    def contains(self, now: datetime) -> bool:
        return self.has_started(now) and not self.has_ended(now)


CONFIRMATION_NUMBER_PATTERN = re.compile(r"^[A-Z]{1,8}\d{1,12}$")


@dataclass(frozen=True)
class ConfirmationNumber:
    """Caller-facing registration identifier, e.g. RB482913."""

    value: str

    def __post_init__(self) -> None:
        if not CONFIRMATION_NUMBER_PATTERN.match(self.value):
            raise ValueError(f"Invalid confirmation number format: {self.value!r}")

    def __str__(self) -> str:
        return self.value
