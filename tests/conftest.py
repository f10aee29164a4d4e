from contextlib import contextmanager
from typing import AsyncGenerator, Optional
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.base import Base
from services.bookings_service import models as _booking_models  # noqa: F401
from services.bookings_service.events import EventDispatcher


def _use_immediate_transactions(engine) -> None:
    """Make every transaction take SQLite's write lock up front.

    Concurrent sessions then queue behind each other the way row locks
    serialize writers on PostgreSQL, instead of failing with SQLITE_BUSY
    on lock upgrade.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    Fresh SQLite database file per test.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}",
        connect_args={"timeout": 30},
    )
    _use_immediate_transactions(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Independent sessions for tests that simulate concurrent callers."""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def dispatcher() -> EventDispatcher:
    """Private dispatcher so tests never share subscriptions."""
    return EventDispatcher()


@pytest.fixture
def recorded_events(dispatcher) -> list:
    events = []

    async def _record(evt):
        events.append(evt)

    dispatcher.subscribe_all(_record)
    return events


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def make_user(user_id: Optional[str] = None, role: str = "athlete") -> AuthUser:
    return AuthUser(
        user_id=user_id or f"{role}-{uuid.uuid4().hex[:8]}",
        email=f"{role}-{uuid.uuid4().hex[:6]}@test.com",
        role=role,
    )


@contextmanager
def override_auth(app, user: AuthUser):
    """Temporarily authenticate every request to ``app`` as ``user``."""
    previous = app.dependency_overrides.get(get_current_user)
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield user
    finally:
        if previous is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = previous


@pytest.fixture
def bookings_app():
    from services.bookings_service.app.main import app

    return app


@pytest_asyncio.fixture
async def client(bookings_app, db_session) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient for the bookings app bound to the test database.
    """
    from libs.db.session import get_async_db

    bookings_app.dependency_overrides[get_async_db] = lambda: db_session

    async with AsyncClient(
        transport=ASGITransport(app=bookings_app), base_url="http://test"
    ) as ac:
        yield ac

    bookings_app.dependency_overrides.clear()
