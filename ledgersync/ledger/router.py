"""FastAPI router for manual ledger entries, account alerts and reports."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from ledgersync.core.exceptions import AccountNotFoundError
from ledgersync.core.money import MAX_AMOUNT
from ledgersync.db.unit_of_work import UnitOfWork
from ledgersync.emails.models import Category
from ledgersync.ledger.budgets import (
    BudgetAlert,
    CreditUtilizationAlert,
    check_budget_limits,
    check_credit_utilization,
)
from ledgersync.ledger.reports import FinancialReport, ReportRange, build_report
from ledgersync.ledger.writer import LedgerResult, LedgerWriter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users/{user_id}", tags=["ledger"])


class ManualTransactionRequest(BaseModel):
    account_id: int
    occurred_on: date
    amount: Decimal = Field(..., gt=0, lt=MAX_AMOUNT, decimal_places=2)
    direction: Literal["debit", "credit"]
    merchant: str = Field(default="", max_length=255)
    category: Category = "other"


class AlertsResponse(BaseModel):
    budgets: list[BudgetAlert]
    credit_utilization: list[CreditUtilizationAlert]


@router.post(
    "/transactions", response_model=LedgerResult, status_code=status.HTTP_201_CREATED
)
async def add_manual_transaction(user_id: str, body: ManualTransactionRequest):
    """Record a user-entered transaction and update the account balance."""
    try:
        return await LedgerWriter().record(
            user_id,
            body.account_id,
            occurred_on=body.occurred_on,
            amount=body.amount,
            direction=body.direction,
            merchant=body.merchant,
            category=body.category,
            provenance="manual",
        )
    except AccountNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/alerts", response_model=AlertsResponse)
async def get_alerts(user_id: str):
    """Budget categories near or over their limit and nearly maxed credit cards."""
    async with UnitOfWork() as uow:
        accounts = await uow.accounts.list_for_user(user_id)

    return AlertsResponse(
        budgets=check_budget_limits(accounts),
        credit_utilization=check_credit_utilization(accounts),
    )


@router.get("/reports", response_model=FinancialReport)
async def get_report(
    user_id: str, report_range: ReportRange = Query("month", alias="range")
):
    """Net worth, debit/credit totals for the range, and monthly spending."""
    async with UnitOfWork() as uow:
        accounts = await uow.accounts.list_for_user(user_id)
        investments = await uow.investments.list_for_user(user_id)
        transactions = await uow.transactions.list_for_user(user_id)

    return build_report(
        accounts,
        investments,
        transactions,
        report_range,
        today=datetime.now(timezone.utc).date(),
    )
