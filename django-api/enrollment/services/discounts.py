"""Discount code eligibility and usage accounting."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from django.utils import timezone

from enrollment.domain import DiscountCodeId, Percentage
from enrollment.domain.errors import (
    DiscountCodeNotFoundError,
    DiscountExpiredError,
    DiscountNotYetActiveError,
    DiscountUsageCapReachedError,
)
from enrollment.stores.interfaces import DiscountStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscountDetails:
    id: DiscountCodeId
    code: str
    description: str
    discount_percentage: Percentage


class DiscountLedger:
    """Validates discount codes and consumes their uses.

    The eligibility window includes its start instant and excludes its end
    instant. consume() is a conditional update in the store, so a code whose
    last use was taken after validate() still gets rejected.
    """

    def __init__(
        self, discounts: DiscountStore, clock: Callable[[], datetime] = timezone.now
    ) -> None:
        self._discounts = discounts
        self._clock = clock

    def validate(self, code: str) -> DiscountDetails:
        """Check that a code can be applied right now. Does not mutate.

        Raises:
            DiscountCodeNotFoundError: If the code is unknown or inactive.
            DiscountNotYetActiveError: If the window has not started.
            DiscountExpiredError: If the window has ended.
            DiscountUsageCapReachedError: If every allowed use is taken.
        """
        discount = self._discounts.get_by_code(code.strip())
        if discount is None or not discount.is_active:
            raise DiscountCodeNotFoundError()

        now = self._clock()
        if not discount.window.has_started(now):
            raise DiscountNotYetActiveError()
        if discount.window.has_ended(now):
            raise DiscountExpiredError()
        if discount.cap_reached:
            raise DiscountUsageCapReachedError()

        return DiscountDetails(
            id=discount.id,
            code=discount.code,
            description=discount.description,
            discount_percentage=discount.discount_percentage,
        )

    def consume(self, discount_id: DiscountCodeId) -> None:
        """Take one use of the code.

        Must run inside the transaction that persists the registration.

        Raises:
            DiscountUsageCapReachedError: If the cap was reached at update time.
        """
        if not self._discounts.increment_uses_if_below_cap(discount_id):
            logger.warning("Discount %s lost the race for its last use", discount_id)
            raise DiscountUsageCapReachedError()
