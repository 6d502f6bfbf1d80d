"""
AssetDesk Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:  AsyncMock session (no database)
    ├── fake_directory:   in-memory Directory
    ├── delivery:         NotificationDelivery that records every call
    ├── dispatcher:       NotificationDispatcher over the two fakes
    ├── sqlite_engine:    file-backed aiosqlite engine (tmp_path) with all tables
    ├── session_factory:  async_sessionmaker bound to that engine
    ├── db_session:       one session from the factory
    ├── seeded_users:     users/employees/assets rows (see seed_directory)
    └── test_client:      HTTPX AsyncClient, get_db_session overridden
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Any, Dict, List, Mapping, Optional, Tuple  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.database import Base, get_db_session  # noqa: E402
from app.models.asset import Asset  # noqa: E402
from app.models.employee import Employee  # noqa: E402
from app.models.user import User  # noqa: E402
from app.schemas.snapshots import AssetSnapshot, EmployeeSnapshot  # noqa: E402
from app.services.delivery_base import NotificationDelivery  # noqa: E402
from app.services.directory import Directory  # noqa: E402
from app.services.dispatcher import NotificationDispatcher  # noqa: E402
from app.services.templates import Template  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Fakes
# ══════════════════════════════════════════════════════════════════════════

class FakeDirectory(Directory):
    """Dict-backed Directory. Set `fail_on` to make a lookup raise."""

    def __init__(self):
        self.employees: Dict[int, EmployeeSnapshot] = {}
        self.assets: Dict[int, AssetSnapshot] = {}
        self.fail_on: set = set()
        self.calls: List[Tuple[str, int]] = []

    def add_employee(self, id: int, name: str, user_id: Optional[int] = None, **extra: Any):
        self.employees[id] = EmployeeSnapshot(id=id, english_name=name, user_id=user_id, **extra)

    def add_asset(self, id: int, tag: str, name: str, assigned_employee_id: Optional[int] = None):
        self.assets[id] = AssetSnapshot(
            id=id, asset_id=tag, name=name, assigned_employee_id=assigned_employee_id
        )

    async def get_employee(self, employee_id: int) -> Optional[EmployeeSnapshot]:
        self.calls.append(("employee", employee_id))
        if "employee" in self.fail_on:
            raise RuntimeError("employee lookup exploded")
        return self.employees.get(employee_id)

    async def get_asset(self, asset_id: int) -> Optional[AssetSnapshot]:
        self.calls.append(("asset", asset_id))
        if "asset" in self.fail_on:
            raise RuntimeError("asset lookup exploded")
        return self.assets.get(asset_id)


class RecordingDelivery(NotificationDelivery):
    """Records notify()/notify_audience() calls. Set `fail` to make them raise."""

    def __init__(self):
        self.sent: List[Tuple[int, Template, Dict[str, Any]]] = []
        self.audience: List[Tuple[Template, Dict[str, Any]]] = []
        self.fail = False

    async def notify(self, recipient_user_id: int, template: Template, payload: Mapping[str, Any]):
        if self.fail:
            raise RuntimeError("delivery exploded")
        self.sent.append((recipient_user_id, template, dict(payload)))
        return object()

    async def notify_audience(self, template: Template, payload: Mapping[str, Any]) -> int:
        if self.fail:
            raise RuntimeError("delivery exploded")
        self.audience.append((template, dict(payload)))
        return 2

    def recipients(self, template: Optional[Template] = None) -> List[int]:
        return [uid for uid, t, _ in self.sent if template is None or t == template]


# ══════════════════════════════════════════════════════════════════════════
# Mock / Fake Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = row
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def fake_directory():
    return FakeDirectory()


@pytest.fixture
def delivery():
    return RecordingDelivery()


@pytest.fixture
def dispatcher(fake_directory, delivery):
    return NotificationDispatcher(
        directory=fake_directory,
        delivery=delivery,
        urgent_priorities={"Critical", "High", "Urgent"},
        default_priority="Medium",
    )


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures (in-memory SQLite)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path}/t.db",
        poolclass=NullPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        # WAL lets an open read session coexist with a separate writing session
        dbapi_connection.execute("PRAGMA journal_mode=WAL")

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    return async_sessionmaker(sqlite_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


async def seed_directory(session) -> None:
    """
    Users:      1 admin, 2 manager, 3 agent, 7 agent, 30 employee,
                40 manager (inactive)
    Employees:  3 → user 30, 5 → no user, 9 → user 7
    Assets:     1 (held by employee 3), 2 (in stock), 3 (held by employee 5)
    """
    session.add_all([
        User(id=1, username="admin", email="admin@example.com", role="admin"),
        User(id=2, username="maria", email="maria@example.com", role="manager"),
        User(id=3, username="sam", email="sam@example.com", role="agent"),
        User(id=7, username="tech7", email="tech7@example.com", role="agent"),
        User(id=30, username="li.wei", email="li.wei@example.com", role="employee"),
        User(id=40, username="gone", email="gone@example.com", role="manager", is_active=False),
    ])
    await session.flush()
    session.add_all([
        Employee(id=3, emp_id="EMP-0003", english_name="Li Wei", department="Finance", user_id=30),
        Employee(id=5, emp_id="EMP-0005", english_name="No Account", user_id=None),
        Employee(id=9, emp_id="EMP-0009", english_name="Tech Seven", user_id=7),
    ])
    await session.flush()
    session.add_all([
        Asset(id=1, asset_id="AST-0001", name="ThinkPad X1", assigned_employee_id=3),
        Asset(id=2, asset_id="AST-0002", name="Dell Monitor"),
        Asset(id=3, asset_id="AST-0003", name="iPad", assigned_employee_id=5),
    ])
    await session.commit()


@pytest_asyncio.fixture
async def seeded_users(session_factory):
    async with session_factory() as session:
        await seed_directory(session)


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory, seeded_users):
    """
    HTTPX AsyncClient talking to the FastAPI app over ASGITransport, with
    the request session bound to the in-memory test database.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app

    async def override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
