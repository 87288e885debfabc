"""Identity resolution for parent accounts."""

import logging

from enrollment.domain import Email, ParentAccount, ParentProfile
from enrollment.stores.interfaces import AccountStore

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Finds a parent account by email or provisions a new one.

    An existing account is returned unmodified; profile fields from the
    current submission never overwrite it. No login credential is created.
    """

    def __init__(self, accounts: AccountStore) -> None:
        self._accounts = accounts

    def resolve(self, email: Email, profile: ParentProfile) -> ParentAccount:
        existing = self._accounts.get_by_email(email)
        if existing is not None:
            return existing

        account, created = self._accounts.get_or_create(email, profile)
        if created:
            logger.info("Created parent account %s", account.id)
        return account
