'''
Pytest configuration for the FastAPI application.

This file sets up fixtures for:
1. A fresh in-memory SQLite database (and session) per service test.
2. A fake online scheduler shared by services and endpoints.
3. Providing a FastAPI TestClient built from test settings.
4. Providing instances of all service classes, pre-injected with the test session.
'''

import pytest
from typing import AsyncGenerator

# --- FastAPI & Testing Imports ---
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine

# --- Constant Imports ----
from tests.constants import ADMIN_PASSWORD
from tests.fakes import FakeSchedulerClient

# --- Application Imports ---
from src.academy_attendance.main import create_app
from src.academy_attendance.common.config import Settings
from src.academy_attendance.database.engine import build_engine, build_session_factory
from src.academy_attendance.database.models import Base
from src.academy_attendance.services.scheduler_client import get_scheduler_client
from src.academy_attendance.services.holiday_service import HolidayService
from src.academy_attendance.services.attendance_service import AttendanceService
from src.academy_attendance.services.roster_service import RosterService
from src.academy_attendance.services.billing_service import BillingService
from src.academy_attendance.services.class_count_service import ClassCountService


@pytest.fixture(scope="session")
def anyio_backend():
    """
    Override the default 'anyio_backend' fixture.
    1. Forces the backend to 'asyncio' (solves 'trio' error).
    2. Promotes the scope to 'session' (solves 'ScopeMismatch').
    """
    return "asyncio"


@pytest.fixture(scope="function")
def test_settings() -> Settings:
    return Settings(
        TEST_MODE=True,
        DATABASE_URL_TEST="sqlite+aiosqlite://",
        CREATE_TABLES=True,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        SCHEDULER_API_URL="http://scheduler.test/api",
    )


@pytest.fixture(scope="function")
def fake_scheduler() -> FakeSchedulerClient:
    return FakeSchedulerClient()


# --- 1. Endpoint Fixture ---

@pytest.fixture(scope="function")
def client(test_settings: Settings, fake_scheduler: FakeSchedulerClient) -> TestClient:
    """
    The core fixture for endpoint tests.

    1. Builds the app from test settings (in-memory SQLite, tables created
       by the lifespan, a known admin password).
    2. Replaces the online scheduler with the fake.
    3. Every test gets its own app and therefore its own empty database.
    """
    app = create_app(test_settings)
    app.dependency_overrides[get_scheduler_client] = lambda: fake_scheduler

    # This 'with' block runs the app's startup lifespan,
    # which creates the engine, the session factory and the tables.
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# --- 2. Function-Scoped Session Fixture (For Service Tests) ---

@pytest.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    Provides a single session on a brand-new in-memory database, so
    nothing leaks between service tests.
    """
    session = build_session_factory(db_engine)()
    try:
        yield session
    finally:
        await session.rollback()
        await session.close()


# --- 3. SERVICE FIXTURES ---

@pytest.fixture(scope="function")
def holiday_service(db_session: AsyncSession) -> HolidayService:
    return HolidayService(db=db_session)


@pytest.fixture(scope="function")
def attendance_service(
    db_session: AsyncSession,
    holiday_service: HolidayService,
    fake_scheduler: FakeSchedulerClient
) -> AttendanceService:
    return AttendanceService(db=db_session, holiday_service=holiday_service, scheduler=fake_scheduler)


@pytest.fixture(scope="function")
def roster_service(db_session: AsyncSession, fake_scheduler: FakeSchedulerClient) -> RosterService:
    return RosterService(db=db_session, scheduler=fake_scheduler)


@pytest.fixture(scope="function")
def billing_service(
    db_session: AsyncSession,
    roster_service: RosterService,
    attendance_service: AttendanceService,
    fake_scheduler: FakeSchedulerClient
) -> BillingService:
    return BillingService(
        db=db_session,
        roster_service=roster_service,
        attendance_service=attendance_service,
        scheduler=fake_scheduler
    )


@pytest.fixture(scope="function")
def class_count_service(
    attendance_service: AttendanceService,
    fake_scheduler: FakeSchedulerClient
) -> ClassCountService:
    return ClassCountService(attendance_service=attendance_service, scheduler=fake_scheduler)
