import os

# Force test database URL before any ledgersync imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from decimal import Decimal  # noqa: E402

import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from ledgersync.db import base  # noqa: E402
from ledgersync.db.base import Base  # noqa: E402
from ledgersync.db.unit_of_work import UnitOfWork  # noqa: E402


@pytest_asyncio.fixture
async def session_factory():
    """
    Provide a session factory over a fresh in-memory database per test.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """
    Session factory over a file-backed database with a real connection pool.

    Unlike the in-memory fixture, each session gets its own connection, so
    concurrent writers contend for the database as they would in production.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def app_session_factory(session_factory, monkeypatch):
    """Route code that uses the default session factory to the test database."""
    monkeypatch.setattr(base, "AsyncSessionLocal", session_factory)
    yield session_factory


async def create_user(session_factory, user_id: str = "user-1", linked: bool = True):
    async with UnitOfWork(session_factory=session_factory) as uow:
        if linked:
            user = await uow.users.save_gmail_token(user_id, "access-token", "refresh-token")
        else:
            user = await uow.users.create(id=user_id)
        await uow.commit()
    return user


async def create_account(
    session_factory,
    user_id: str = "user-1",
    name: str = "HDFC Credit Card",
    bank: str = "HDFC",
    balance: str = "1000",
    **extra,
):
    async with UnitOfWork(session_factory=session_factory) as uow:
        account = await uow.accounts.create(
            user_id=user_id,
            name=name,
            bank=bank,
            balance=Decimal(balance),
            **extra,
        )
        await uow.commit()
    return account


async def get_account(session_factory, user_id: str, account_id: int):
    async with UnitOfWork(session_factory=session_factory) as uow:
        return await uow.accounts.get(user_id, account_id)
