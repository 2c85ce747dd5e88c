"""Tests for the HTTP API."""

from datetime import date
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from ledgersync.db.unit_of_work import UnitOfWork
from ledgersync.investments.router import set_scheduler
from ledgersync.ledger import LedgerWriter
from ledgersync.main import app
from ledgersync.sync.router import set_watcher
from tests.conftest import create_account, create_user, get_account


@pytest_asyncio.fixture
async def client(app_session_factory):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    set_watcher(None)
    set_scheduler(None)


class TestSyncEndpoints:
    @pytest.mark.asyncio
    async def test_request_sync_creates_trigger(self, client, app_session_factory):
        response = await client.post("/sync/user-1")

        assert response.status_code == 202
        assert response.json()["status"] == "pending"
        async with UnitOfWork(session_factory=app_session_factory) as uow:
            assert await uow.triggers.get_for_user("user-1") is not None

    @pytest.mark.asyncio
    async def test_second_request_conflicts(self, client):
        assert (await client.post("/sync/user-1")).status_code == 202
        response = await client.post("/sync/user-1")
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_status_without_watcher(self, client):
        assert (await client.get("/sync/status")).status_code == 503

    @pytest.mark.asyncio
    async def test_gmail_token_link_and_unlink(self, client, app_session_factory):
        response = await client.put(
            "/users/user-1/gmail-token",
            json={"access_token": "ya29.token", "refresh_token": "1//refresh"},
        )
        assert response.status_code == 204

        async with UnitOfWork(session_factory=app_session_factory) as uow:
            user = await uow.users.get_by_id("user-1")
        assert user.has_gmail_token

        assert (await client.delete("/users/user-1/gmail-token")).status_code == 204
        async with UnitOfWork(session_factory=app_session_factory) as uow:
            user = await uow.users.get_by_id("user-1")
        assert not user.has_gmail_token

    @pytest.mark.asyncio
    async def test_unlink_unknown_user(self, client):
        assert (await client.delete("/users/ghost/gmail-token")).status_code == 404


class TestLedgerEndpoints:
    @pytest.mark.asyncio
    async def test_manual_transaction(self, client, app_session_factory):
        await create_user(app_session_factory)
        account = await create_account(app_session_factory, balance="1000")

        response = await client.post(
            "/users/user-1/transactions",
            json={
                "account_id": account.id,
                "occurred_on": "2024-01-05",
                "amount": "250.75",
                "direction": "debit",
                "merchant": "Pharmacy",
                "category": "healthcare",
            },
        )

        assert response.status_code == 201
        assert response.json()["duplicate"] is False
        stored = await get_account(app_session_factory, "user-1", account.id)
        assert stored.balance == Decimal("749.25")

    @pytest.mark.asyncio
    async def test_manual_transaction_unknown_account(self, client):
        response = await client.post(
            "/users/user-1/transactions",
            json={"account_id": 42, "occurred_on": "2024-01-05", "amount": 1, "direction": "credit"},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, "1.234", "1e16"])
    async def test_manual_transaction_rejects_bad_amount(self, client, amount):
        response = await client.post(
            "/users/user-1/transactions",
            json={"account_id": 1, "occurred_on": "2024-01-05", "amount": amount, "direction": "debit"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_report(self, client, app_session_factory):
        await create_user(app_session_factory)
        savings = await create_account(app_session_factory, name="Savings", balance="5000")
        card = await create_account(
            app_session_factory, kind="credit", balance="0", credit_limit=Decimal("10000")
        )
        writer = LedgerWriter()
        await writer.record(
            "user-1",
            card.id,
            occurred_on=date(2024, 1, 5),
            amount=Decimal("300"),
            direction="debit",
            merchant="Swiggy",
            category="food",
        )
        await writer.record(
            "user-1",
            savings.id,
            occurred_on=date(2024, 2, 1),
            amount=Decimal("1000"),
            direction="credit",
            merchant="Employer",
            category="other",
        )

        response = await client.get("/users/user-1/reports", params={"range": "all"})

        assert response.status_code == 200
        body = response.json()
        assert body["range"] == "all"
        assert body["since"] is None
        assert Decimal(body["net_worth"]) == Decimal("16300")
        assert Decimal(body["total_debits"]) == Decimal("300")
        assert Decimal(body["total_credits"]) == Decimal("1000")
        assert body["transaction_count"] == 2
        assert [m["month"] for m in body["monthly_spending"]] == ["2024-01"]

    @pytest.mark.asyncio
    async def test_report_rejects_unknown_range(self, client):
        response = await client.get("/users/user-1/reports", params={"range": "decade"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_alerts(self, client, app_session_factory):
        await create_account(
            app_session_factory,
            kind="credit",
            balance="9500",
            credit_limit=Decimal("10000"),
            budgets={"food": {"limit": 100, "spent": 120}},
        )

        body = (await client.get("/users/user-1/alerts")).json()

        assert [b["category"] for b in body["budgets"]] == ["food"]
        assert body["budgets"][0]["status"] == "exceeded"
        assert body["credit_utilization"][0]["percentage"] == 95.0


class TestMisc:
    @pytest.mark.asyncio
    async def test_healthz(self, client):
        response = await client.get("/healthz")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "x-request-id" in {k.lower() for k in response.headers}

    @pytest.mark.asyncio
    async def test_price_status_without_scheduler(self, client):
        assert (await client.get("/investments/prices/status")).status_code == 503
