from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from holiday_tracker.api.deps import get_today
from holiday_tracker.db import get_session
from holiday_tracker.main import app
from holiday_tracker.models import Department, SQLModel, User
from holiday_tracker.models.enums import UserRole, UserStatus

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

# Friday. Every date rule in the suite is evaluated against this day.
TODAY = date(2025, 8, 1)


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create a fresh in-memory database with all tables for each test."""
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session wrapped in a transaction that rolls back after each test."""
    async with engine.connect() as conn:
        txn = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)
        yield session
        await session.close()
        await txn.rollback()


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session and clock dependencies overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_today] = lambda: TODAY
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory inserting a user directly via the DB session."""

    async def _make_user(
        name: str,
        *,
        role: UserRole = UserRole.EMPLOYEE,
        status: UserStatus = UserStatus.ACTIVE,
        department: Department | None = None,
        holiday_allowance: int = 20,
    ) -> User:
        user = User(
            name=name,
            email=f"{name.lower().replace(' ', '.')}@example.com",
            role=role.value,
            status=status.value,
            department_id=department.id if department is not None else None,
            holiday_allowance=holiday_allowance,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


@pytest.fixture
async def engineering(db_session: AsyncSession) -> Department:
    department = Department(name="Engineering", location="Berlin")
    db_session.add(department)
    await db_session.flush()
    return department


@pytest.fixture
async def sales(db_session: AsyncSession) -> Department:
    department = Department(name="Sales", location="London")
    db_session.add(department)
    await db_session.flush()
    return department


@pytest.fixture
async def admin(make_user: Callable[..., Awaitable[User]], engineering: Department) -> User:
    return await make_user("Ada Admin", role=UserRole.ADMIN, department=engineering)


@pytest.fixture
async def employee(make_user: Callable[..., Awaitable[User]], engineering: Department) -> User:
    return await make_user("Eve Employee", department=engineering)


@pytest.fixture
async def teammate(make_user: Callable[..., Awaitable[User]], engineering: Department) -> User:
    return await make_user("Tom Teammate", department=engineering)


@pytest.fixture
async def outsider(make_user: Callable[..., Awaitable[User]], sales: Department) -> User:
    return await make_user("Olga Outsider", department=sales)
