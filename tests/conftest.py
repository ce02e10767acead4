from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from vacation_portal.db import get_session
from vacation_portal.main import app
from vacation_portal.models import Account, SQLModel
from vacation_portal.models.enums import AccountRole
from vacation_portal.security import hash_password

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")
DEFAULT_PASSWORD = "correct-horse-battery"


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create a fresh database per test.

    Defaults to an in-memory SQLite database; point TEST_DATABASE_URL at
    PostgreSQL to exercise row locks and the real driver.
    """
    kwargs: dict[str, Any] = {}
    if TEST_DATABASE_URL.startswith("sqlite"):
        kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    _engine = create_async_engine(TEST_DATABASE_URL, **kwargs)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a session bound to the per-test database."""
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_account(db_session: AsyncSession) -> Callable[..., Awaitable[Account]]:
    """Factory that inserts an account directly, bypassing the API."""
    counter = {"n": 0}

    async def _make(
        name: str | None = None,
        role: AccountRole = AccountRole.EMPLOYEE,
        total_days: int = 20,
        used_days: int = 0,
        password: str = DEFAULT_PASSWORD,
    ) -> Account:
        counter["n"] += 1
        n = counter["n"]
        account = Account(
            name=name or f"{role.value.title()} {n}",
            email=f"{role.value}{n}@example.com",
            employee_code=f"{9000000 + n:07d}",
            password_hash=hash_password(password),
            role=role.value,
            total_days=total_days,
            used_days=used_days,
        )
        db_session.add(account)
        await db_session.commit()
        await db_session.refresh(account)
        # Detached so a rollback inside a request handler cannot expire it.
        db_session.expunge(account)
        return account

    return _make
