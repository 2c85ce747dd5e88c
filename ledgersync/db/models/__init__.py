"""Database models for the ledger and the sync pipeline."""

from .user import User
from .account import Account
from .transaction import Transaction
from .investment import Investment
from .sync_trigger import SyncTrigger

__all__ = ["User", "Account", "Transaction", "Investment", "SyncTrigger"]
