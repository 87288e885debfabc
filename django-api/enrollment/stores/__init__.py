from enrollment.stores.interfaces import (
    AccountStore,
    ConfirmationNumberConflict,
    CourseStore,
    DiscountStore,
    RegistrationStore,
    UnitOfWork,
)

__all__ = [
    "AccountStore",
    "ConfirmationNumberConflict",
    "CourseStore",
    "DiscountStore",
    "RegistrationStore",
    "UnitOfWork",
]
