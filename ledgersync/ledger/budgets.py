"""Budget and credit-utilization alerts computed from account state."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Literal

from pydantic import BaseModel

from ledgersync.db.models.account import Account

BUDGET_WARNING_PERCENT = 80.0
BUDGET_EXCEEDED_PERCENT = 100.0
CREDIT_UTILIZATION_PERCENT = 90.0


class BudgetAlert(BaseModel):
    account_id: int
    account_name: str
    category: str
    limit: float
    spent: float
    percentage: float
    status: Literal["warning", "exceeded"]


class CreditUtilizationAlert(BaseModel):
    account_id: int
    account_name: str
    balance: float
    limit: float
    percentage: float


def _budget_status(percentage: float) -> Literal["ok", "warning", "exceeded"]:
    if percentage >= BUDGET_EXCEEDED_PERCENT:
        return "exceeded"
    if percentage >= BUDGET_WARNING_PERCENT:
        return "warning"
    return "ok"


def check_budget_limits(accounts: Iterable[Account]) -> list[BudgetAlert]:
    """Categories whose spending has reached 80% (warning) or 100% (exceeded).

    Categories with a missing or non-positive limit are ignored.
    """
    alerts: list[BudgetAlert] = []
    for account in accounts:
        for category, data in (account.budgets or {}).items():
            limit = float((data or {}).get("limit") or 0)
            spent = float((data or {}).get("spent") or 0)
            if limit <= 0:
                continue

            percentage = spent / limit * 100
            status = _budget_status(percentage)
            if status == "ok":
                continue

            alerts.append(
                BudgetAlert(
                    account_id=account.id,
                    account_name=account.name,
                    category=category,
                    limit=limit,
                    spent=spent,
                    percentage=round(percentage, 2),
                    status=status,
                )
            )
    return alerts


def check_credit_utilization(accounts: Iterable[Account]) -> list[CreditUtilizationAlert]:
    """Credit accounts whose balance has reached 90% of the credit limit."""
    alerts: list[CreditUtilizationAlert] = []
    for account in accounts:
        if account.kind != "credit" or not account.credit_limit:
            continue
        limit = Decimal(account.credit_limit)
        if limit <= 0:
            continue

        percentage = float(Decimal(account.balance) / limit * 100)
        if percentage >= CREDIT_UTILIZATION_PERCENT:
            alerts.append(
                CreditUtilizationAlert(
                    account_id=account.id,
                    account_name=account.name,
                    balance=float(account.balance),
                    limit=float(limit),
                    percentage=round(percentage, 2),
                )
            )
    return alerts
