"""Confirmation number generation."""

import logging
import random

from enrollment.domain import ConfirmationNumber
from enrollment.domain.errors import ConfirmationGenerationExhaustedError
from enrollment.stores.interfaces import RegistrationStore

logger = logging.getLogger(__name__)


class ConfirmationMinter:
    """Mints confirmation numbers such as RB482913.

    Candidates are checked against stored registrations and regenerated on
    collision, up to max_attempts times.
    """

    def __init__(
        self,
        registrations: RegistrationStore,
        prefix: str = "RB",
        digits: int = 6,
        max_attempts: int = 5,
        rng: random.Random | None = None,
    ) -> None:
        if digits < 1:
            raise ValueError("digits must be positive")
        if max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        self._registrations = registrations
        self._prefix = prefix
        self._low = 10 ** (digits - 1)
        self._high = 10**digits - 1
        self._max_attempts = max_attempts
        self._rng = rng or random.SystemRandom()

    def candidate(self) -> ConfirmationNumber:
        return ConfirmationNumber(f"{self._prefix}{self._rng.randint(self._low, self._high)}")

    def mint(self) -> ConfirmationNumber:
        """Return a confirmation number not used by any registration.

        Raises:
            ConfirmationGenerationExhaustedError: If every attempt collided.
        """
        for attempt in range(1, self._max_attempts + 1):
            number = self.candidate()
            if not self._registrations.confirmation_number_exists(number.value):
                return number
            logger.debug("Confirmation number collision on attempt %d", attempt)

        logger.error(
            "No free confirmation number after %d attempts", self._max_attempts
        )
        raise ConfirmationGenerationExhaustedError()
