import os
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from kasa.categorization.cache import RuleCache
from kasa.models import (
    BankAccount,
    Category,
    CategoryRule,
    ImportedTransaction,
    ManualExpense,
    User,
)
from kasa.models.base import Base
from kasa.services.categorization import rule_cache

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def db_engine():
    """Fresh schema per test. In-memory SQLite needs a single shared connection."""
    kwargs = {}
    if TEST_DATABASE_URL.startswith("sqlite"):
        kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, **kwargs)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Provide a database session with ``expire_on_commit`` off, like the app."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture(autouse=True)
def clear_rule_cache():
    """The process-wide rule cache must not leak between tests."""
    rule_cache.clear()
    yield
    rule_cache.clear()


@pytest.fixture
def fresh_cache() -> RuleCache:
    return RuleCache(ttl_seconds=10)


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = User(email="alice@example.com", full_name="Alice Martin", is_active=True)
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def another_user(db_session: AsyncSession) -> User:
    user = User(email="bob@example.com", full_name="Bob Durand", is_active=True)
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def checking_account(db_session: AsyncSession, test_user: User) -> BankAccount:
    account = BankAccount(user_id=test_user.id, label="Compte courant")
    db_session.add(account)
    await db_session.commit()
    return account


@pytest.fixture
async def savings_account(db_session: AsyncSession, test_user: User) -> BankAccount:
    account = BankAccount(user_id=test_user.id, label="Livret A")
    db_session.add(account)
    await db_session.commit()
    return account


@pytest.fixture
async def groceries(db_session: AsyncSession) -> Category:
    category = Category(name="Courses", slug="courses", is_system=True, created_at=BASE_TIME)
    db_session.add(category)
    await db_session.commit()
    return category


@pytest.fixture
async def transport(db_session: AsyncSession) -> Category:
    category = Category(
        name="Transport",
        slug="transport",
        is_system=True,
        created_at=BASE_TIME + timedelta(seconds=1),
    )
    db_session.add(category)
    await db_session.commit()
    return category


@pytest.fixture
def make_transaction(db_session: AsyncSession, test_user: User, checking_account: BankAccount):
    """Factory for persisted transactions. Pass ``debit`` or ``credit``."""

    async def _make(
        label: str,
        debit: str | None = None,
        credit: str | None = None,
        accounting_date: date = date(2025, 3, 10),
        account: BankAccount | None = None,
        user: User | None = None,
        **fields,
    ) -> ImportedTransaction:
        tx = ImportedTransaction(
            user_id=(user or test_user).id,
            account_id=(account or checking_account).id,
            accounting_date=accounting_date,
            label=label,
            debit=Decimal(debit) if debit is not None else None,
            credit=Decimal(credit) if credit is not None else None,
            **fields,
        )
        db_session.add(tx)
        await db_session.commit()
        return tx

    return _make


@pytest.fixture
def make_expense(db_session: AsyncSession, test_user: User):
    async def _make(
        label: str, amount: str, expense_date: date = date(2025, 3, 10)
    ) -> ManualExpense:
        expense = ManualExpense(
            user_id=test_user.id, label=label, amount=Decimal(amount), date=expense_date
        )
        db_session.add(expense)
        await db_session.commit()
        return expense

    return _make


@pytest.fixture
def make_rule(db_session: AsyncSession):
    """Factory for category rules with explicit creation times for ordering."""
    counter = {"n": 0}

    async def _make(
        keyword: str,
        category: Category,
        user: User | None = None,
        amount: str | None = None,
    ) -> CategoryRule:
        counter["n"] += 1
        rule = CategoryRule(
            keyword=keyword,
            category_id=category.id,
            user_id=user.id if user is not None else None,
            is_system=user is None,
            amount=Decimal(amount) if amount is not None else None,
            created_at=BASE_TIME + timedelta(minutes=counter["n"]),
        )
        db_session.add(rule)
        await db_session.commit()
        return rule

    return _make
