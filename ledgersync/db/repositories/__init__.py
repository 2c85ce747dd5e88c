"""Repository exports."""

from .account_repository import AccountRepository
from .transaction_repository import TransactionRepository
from .investment_repository import InvestmentRepository
from .trigger_repository import SyncTriggerRepository
from .user_repository import UserRepository

__all__ = [
    "AccountRepository",
    "TransactionRepository",
    "InvestmentRepository",
    "SyncTriggerRepository",
    "UserRepository",
]
