"""
Account matcher.

Attributes an alert email to one of the user's accounts by looking for
each account's bank name in the email body. The fallback chain (first
account, then a freshly created default account) means a transaction is
never dropped only because no account matched; the price of that is that
a misattribution cannot be detected from the stored data alone.
"""

from __future__ import annotations

from typing import Literal, Optional, Sequence

import structlog
from pydantic import BaseModel

from ledgersync.db.unit_of_work import SessionFactory, UnitOfWork
from ledgersync.emails.models import AccountRef
from ledgersync.matching.config import MatcherConfig

logger = structlog.get_logger(__name__)

MatchMethod = Literal["bank_name", "first_account", "default_created"]


class AccountMatch(BaseModel):
    """The account chosen for a message and how it was chosen."""

    account: AccountRef
    method: MatchMethod


def select_account(
    body: str,
    accounts: Sequence[AccountRef],
    fallback_to_first: bool = True,
) -> Optional[AccountMatch]:
    """
    Choose an account for an email without touching the database.

    Iterates in list order and returns the first account whose bank name
    occurs in ``body`` (case-insensitive). Accounts with a blank bank name
    never match this way, since an empty string is a substring of any text.

    Returns:
        The match, or None if ``accounts`` is empty (or fallback is off and
        no bank name matched)
    """
    text = body.lower()
    for account in accounts:
        bank = account.bank.strip().lower()
        if bank and bank in text:
            return AccountMatch(account=account, method="bank_name")

    if accounts and fallback_to_first:
        return AccountMatch(account=accounts[0], method="first_account")
    return None


class AccountMatcher:
    """Resolves the target account for each message in a sync run."""

    def __init__(
        self,
        config: Optional[MatcherConfig] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.config = config or MatcherConfig()
        self._session_factory = session_factory

    async def match(
        self, user_id: str, body: str, accounts: list[AccountRef]
    ) -> Optional[AccountMatch]:
        """
        Match ``body`` to an account, creating a default account if needed.

        When the list is empty and default creation is enabled, the new
        account is persisted first and then appended to ``accounts`` so the
        rest of the run attributes to it instead of creating another.

        Args:
            user_id: Owning user
            body: Decoded email text
            accounts: The run's account list (mutated on default creation)

        Returns:
            The match, or None when nothing could be attributed
        """
        match = select_account(
            body, accounts, fallback_to_first=self.config.fallback_to_first_account
        )
        if match is not None:
            logger.debug(
                "matcher.matched",
                user_id=user_id,
                account_id=match.account.id,
                method=match.method,
            )
            return match

        if accounts or not self.config.create_default_account:
            logger.info("matcher.no_match", user_id=user_id, accounts=len(accounts))
            return None

        logger.warning("matcher.creating_default_account", user_id=user_id)
        async with UnitOfWork(session_factory=self._session_factory) as uow:
            created = await uow.accounts.create_default(user_id)
            await uow.commit()

        ref = AccountRef(id=created.id, name=created.name, bank=created.bank)
        accounts.append(ref)
        logger.info("matcher.default_account_created", user_id=user_id, account_id=ref.id)
        return AccountMatch(account=ref, method="default_created")
