"""Pytest fixtures for payroll service tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from hr_payroll.api.app import create_app
from hr_payroll.api.dependencies import get_db_session
from hr_payroll.config import Settings
from hr_payroll.database import create_engine, create_schema, create_session_factory
from hr_payroll.models import Employee, SalaryStructure, User
from hr_payroll.services.rbac import Actor, Role

# One in-memory database per test; StaticPool keeps every session on the
# same connection so the schema survives between sessions.
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@dataclass
class Seed:
    """Ids of the rows every test starts with."""

    admin_id: int
    manager_id: int
    staff_id: int
    employee_user_id: int
    other_user_id: int
    alice_id: int
    bob_id: int
    carol_id: int
    alice_structure_id: int


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine with the schema in place."""
    engine = create_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
async def seeded(session_factory: async_sessionmaker[AsyncSession]) -> Seed:
    """Commit users, employees and salary structures.

    alice (linked to the employee user) earns 5000.00 from 2024-01-01,
    bob (linked to another employee user) earns 4000.00, and carol has
    no salary structure.
    """
    async with session_factory() as session:
        admin = User(username="admin", email="admin@example.com", role="administrator")
        manager = User(username="manager", email="manager@example.com", role="hr_manager")
        staff = User(username="staff", email="staff@example.com", role="hr_staff")
        emp_user = User(username="alice", email="alice@example.com", role="employee")
        other_user = User(username="bob", email="bob@example.com", role="employee")
        session.add_all([admin, manager, staff, emp_user, other_user])
        await session.flush()

        alice = Employee(
            user_id=emp_user.id,
            employee_code="EMP001",
            first_name="Alice",
            last_name="Smith",
            email="alice@example.com",
            joining_date=date(2023, 6, 1),
        )
        bob = Employee(
            user_id=other_user.id,
            employee_code="EMP002",
            first_name="Bob",
            last_name="Jones",
            email="bob@example.com",
            joining_date=date(2023, 9, 1),
        )
        carol = Employee(
            employee_code="EMP003",
            first_name="Carol",
            last_name="White",
            email="carol@example.com",
            joining_date=date(2024, 2, 1),
        )
        session.add_all([alice, bob, carol])
        await session.flush()

        alice_structure = SalaryStructure(
            employee_id=alice.id,
            basic_salary=Decimal("5000.00"),
            house_rent_allowance=Decimal("1000.00"),
            effective_from=date(2024, 1, 1),
            active=True,
        )
        bob_structure = SalaryStructure(
            employee_id=bob.id,
            basic_salary=Decimal("4000.00"),
            effective_from=date(2024, 1, 1),
            active=True,
        )
        session.add_all([alice_structure, bob_structure])
        await session.flush()

        seed = Seed(
            admin_id=admin.id,
            manager_id=manager.id,
            staff_id=staff.id,
            employee_user_id=emp_user.id,
            other_user_id=other_user.id,
            alice_id=alice.id,
            bob_id=bob.id,
            carol_id=carol.id,
            alice_structure_id=alice_structure.id,
        )
        await session.commit()
    return seed


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession], seeded: Seed
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test, on top of the seed data."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ============================================================================
# Actors
# ============================================================================


@pytest.fixture
def admin(seeded: Seed) -> Actor:
    return Actor(user_id=seeded.admin_id, role=Role.ADMINISTRATOR)


@pytest.fixture
def manager(seeded: Seed) -> Actor:
    return Actor(user_id=seeded.manager_id, role=Role.HR_MANAGER)


@pytest.fixture
def staff(seeded: Seed) -> Actor:
    return Actor(user_id=seeded.staff_id, role=Role.HR_STAFF)


@pytest.fixture
def employee_actor(seeded: Seed) -> Actor:
    """The employee user that owns alice's records."""
    return Actor(user_id=seeded.employee_user_id, role=Role.EMPLOYEE)


@pytest.fixture
def other_employee_actor(seeded: Seed) -> Actor:
    return Actor(user_id=seeded.other_user_id, role=Role.EMPLOYEE)


# ============================================================================
# HTTP client
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="WARNING",
        audit_default_limit=20,
        create_tables=False,
    )


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    seeded: Seed,
    test_settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app, with sessions from the test engine."""
    app = create_app(test_settings)

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
