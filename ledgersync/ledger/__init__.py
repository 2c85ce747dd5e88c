"""Ledger module: transaction recording, budget alerts and reports."""

from ledgersync.ledger.budgets import (
    BudgetAlert,
    CreditUtilizationAlert,
    check_budget_limits,
    check_credit_utilization,
)
from ledgersync.ledger.reports import FinancialReport, build_report
from ledgersync.ledger.writer import LedgerResult, LedgerWriter

__all__ = [
    "BudgetAlert",
    "CreditUtilizationAlert",
    "check_budget_limits",
    "check_credit_utilization",
    "FinancialReport",
    "build_report",
    "LedgerResult",
    "LedgerWriter",
]
