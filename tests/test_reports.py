"""Tests for net worth, period totals and monthly spending reports."""

from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from ledgersync.ledger.reports import (
    account_worth,
    build_report,
    monthly_spending,
    period_totals,
    range_start,
)


def _account(**fields):
    defaults = dict(kind="deposit", balance=Decimal("0"), credit_limit=None)
    defaults.update(fields)
    return SimpleNamespace(**defaults)


def _tx(day, amount, direction="debit"):
    return SimpleNamespace(
        occurred_at=datetime(day.year, day.month, day.day, tzinfo=timezone.utc),
        amount=Decimal(amount),
        direction=direction,
    )


class TestAccountWorth:
    def test_deposit_counts_balance(self):
        assert account_worth(_account(balance=Decimal("2500.50"))) == Decimal("2500.50")

    def test_credit_counts_remaining_limit(self):
        card = _account(kind="credit", balance=Decimal("3000"), credit_limit=Decimal("10000"))
        assert account_worth(card) == Decimal("7000")

    def test_credit_without_limit_counts_balance(self):
        card = _account(kind="credit", balance=Decimal("-400"))
        assert account_worth(card) == Decimal("-400")


class TestRangeStart:
    @pytest.mark.parametrize(
        "report_range, expected",
        [
            ("week", date(2024, 3, 8)),
            ("month", date(2024, 3, 1)),
            ("year", date(2024, 1, 1)),
            ("all", None),
        ],
    )
    def test_range_start(self, report_range, expected):
        assert range_start(report_range, date(2024, 3, 15)) == expected


class TestPeriodTotals:
    def test_sums_by_direction(self):
        transactions = [
            _tx(date(2024, 3, 2), "100"),
            _tx(date(2024, 3, 5), "50.25"),
            _tx(date(2024, 3, 9), "1200", direction="credit"),
        ]

        assert period_totals(transactions) == (Decimal("150.25"), Decimal("1200"), 3)

    def test_since_is_inclusive(self):
        transactions = [
            _tx(date(2024, 2, 29), "999"),
            _tx(date(2024, 3, 1), "10"),
            _tx(date(2024, 3, 20), "5", direction="credit"),
        ]

        assert period_totals(transactions, since=date(2024, 3, 1)) == (
            Decimal("10"),
            Decimal("5"),
            2,
        )

    def test_empty(self):
        assert period_totals([]) == (Decimal("0"), Decimal("0"), 0)


class TestMonthlySpending:
    def test_debits_grouped_by_month(self):
        transactions = [
            _tx(date(2024, 2, 10), "40"),
            _tx(date(2024, 1, 3), "100"),
            _tx(date(2024, 1, 28), "25.50"),
            _tx(date(2024, 1, 15), "5000", direction="credit"),
        ]

        result = monthly_spending(transactions)

        assert [(m.month, m.amount) for m in result] == [
            ("2024-01", Decimal("125.50")),
            ("2024-02", Decimal("40")),
        ]

    def test_keeps_latest_months(self):
        transactions = [_tx(date(2023 + (m // 12), m % 12 + 1, 1), "1") for m in range(14)]

        result = monthly_spending(transactions)

        assert len(result) == 12
        assert result[0].month == "2023-03"
        assert result[-1].month == "2024-02"

    def test_credit_only_history(self):
        assert monthly_spending([_tx(date(2024, 1, 1), "10", direction="credit")]) == []


class TestBuildReport:
    def test_month_report(self):
        accounts = [
            _account(balance=Decimal("5000")),
            _account(kind="credit", balance=Decimal("2000"), credit_limit=Decimal("10000")),
        ]
        investments = [
            SimpleNamespace(current_value=Decimal("1500")),
            SimpleNamespace(current_value=None),
        ]
        transactions = [
            _tx(date(2024, 2, 20), "300"),
            _tx(date(2024, 3, 4), "120"),
            _tx(date(2024, 3, 10), "1000", direction="credit"),
        ]

        report = build_report(accounts, investments, transactions, "month", today=date(2024, 3, 15))

        assert report.since == date(2024, 3, 1)
        assert report.accounts_total == Decimal("13000")
        assert report.investments_total == Decimal("1500")
        assert report.net_worth == Decimal("14500")
        assert report.total_debits == Decimal("120")
        assert report.total_credits == Decimal("1000")
        assert report.net_spending == Decimal("-880")
        assert report.transaction_count == 2
        assert [m.month for m in report.monthly_spending] == ["2024-02", "2024-03"]

    def test_empty_user(self):
        report = build_report([], [], [], "all", today=date(2024, 3, 15))

        assert report.since is None
        assert report.net_worth == Decimal("0")
        assert report.transaction_count == 0
        assert report.monthly_spending == []
