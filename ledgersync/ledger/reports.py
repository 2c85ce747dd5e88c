"""Aggregated financial reports: net worth, period totals, monthly spending."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Literal, Optional

from pydantic import BaseModel

from ledgersync.db.models.account import Account
from ledgersync.db.models.investment import Investment
from ledgersync.db.models.transaction import Transaction

ReportRange = Literal["week", "month", "year", "all"]

MONTHLY_SPENDING_MONTHS = 12


class MonthlySpending(BaseModel):
    month: str  # YYYY-MM
    amount: Decimal


class FinancialReport(BaseModel):
    range: ReportRange
    since: Optional[date] = None
    net_worth: Decimal
    accounts_total: Decimal
    investments_total: Decimal
    total_debits: Decimal
    total_credits: Decimal
    net_spending: Decimal
    transaction_count: int
    monthly_spending: list[MonthlySpending]


def account_worth(account: Account) -> Decimal:
    """What an account adds to net worth.

    A credit account with a limit counts its remaining credit
    (``limit - balance``); every other account counts its balance.
    """
    balance = Decimal(account.balance)
    if account.kind == "credit" and account.credit_limit:
        return Decimal(account.credit_limit) - balance
    return balance


def range_start(report_range: ReportRange, today: date) -> Optional[date]:
    """First day included in the range; None means all history."""
    if report_range == "week":
        return today - timedelta(days=7)
    if report_range == "month":
        return today.replace(day=1)
    if report_range == "year":
        return today.replace(month=1, day=1)
    return None


def period_totals(
    transactions: Iterable[Transaction], since: Optional[date] = None
) -> tuple[Decimal, Decimal, int]:
    """Sum debits and credits on or after ``since``.

    Returns:
        (total debits, total credits, number of transactions counted)
    """
    debits = Decimal("0")
    credits = Decimal("0")
    count = 0
    for tx in transactions:
        if since is not None and tx.occurred_at.date() < since:
            continue
        count += 1
        if tx.direction == "debit":
            debits += Decimal(tx.amount)
        else:
            credits += Decimal(tx.amount)
    return debits, credits, count


def monthly_spending(
    transactions: Iterable[Transaction], months: int = MONTHLY_SPENDING_MONTHS
) -> list[MonthlySpending]:
    """Debit totals per calendar month, oldest first, limited to the latest ``months``."""
    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for tx in transactions:
        if tx.direction == "debit":
            totals[tx.occurred_at.strftime("%Y-%m")] += Decimal(tx.amount)

    keys = sorted(totals)[-months:] if months > 0 else []
    return [MonthlySpending(month=key, amount=totals[key]) for key in keys]


def build_report(
    accounts: list[Account],
    investments: list[Investment],
    transactions: list[Transaction],
    report_range: ReportRange,
    today: date,
) -> FinancialReport:
    accounts_total = sum((account_worth(a) for a in accounts), Decimal("0"))
    investments_total = sum(
        (Decimal(i.current_value or 0) for i in investments), Decimal("0")
    )

    since = range_start(report_range, today)
    debits, credits, count = period_totals(transactions, since)

    return FinancialReport(
        range=report_range,
        since=since,
        net_worth=accounts_total + investments_total,
        accounts_total=accounts_total,
        investments_total=investments_total,
        total_debits=debits,
        total_credits=credits,
        net_spending=debits - credits,
        transaction_count=count,
        monthly_spending=monthly_spending(transactions),
    )
