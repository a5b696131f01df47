"""Shared test fixtures for MasterBook API tests.

Each test gets its own file-backed SQLite database so that concurrent
sessions in one test see each other's commits, as they would on PostgreSQL.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["APP_ENV"] = "test"
os.environ["BOT_TOKEN"] = ""
os.environ["NOTIFICATION_WORKER_ENABLED"] = "false"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from app.core.database import Base, get_db
from app.core.deps import get_dispatcher
from app.main import app
from app.services.auth import create_access_token
from app.services.notification_service import NotificationDispatcher

# Import all models to ensure they're registered with Base.metadata
from app.models.user import User, UserRole
from app.models.master_profile import MasterProfile
from app.models.service import Service
from app.models.appointment import Appointment  # noqa: F401
from app.models.review import Review  # noqa: F401
from app.models.notification import NotificationOutbox  # noqa: F401

WORK_DAY = "2030-06-10"


class RecordingDispatcher(NotificationDispatcher):
    """Keeps published events in memory."""

    def __init__(self):
        self.events = []

    async def publish(self, event):
        self.events.append(event)

    def types(self):
        return [e.type.value for e in self.events]


class FailingDispatcher(NotificationDispatcher):
    async def publish(self, event):
        raise RuntimeError("bot is down")


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    """Direct DB session for test setup/assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest_asyncio.fixture
async def client(session_factory, dispatcher):
    """Async HTTP test client bound to the per-test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    async def _make(telegram_id: str, first_name: str = "Client", username: str | None = None) -> User:
        user = User(
            telegram_id=telegram_id,
            first_name=first_name,
            username=username,
            role=UserRole.CLIENT.value,
            is_active=True,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_master(db):
    async def _make(
        telegram_id: str = "1001",
        display_name: str = "Anna",
        working_dates: dict | None = None,
        gap_minutes: int | None = None,
    ) -> User:
        user = User(
            telegram_id=telegram_id,
            first_name=display_name,
            role=UserRole.MASTER.value,
            is_active=True,
        )
        user.master_profile = MasterProfile(
            display_name=display_name,
            working_dates=working_dates if working_dates is not None else {
                WORK_DAY: {"start": "09:00", "end": "12:00"},
            },
            gap_minutes=gap_minutes,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_service(db):
    async def _make(
        master: User,
        duration_minutes: int = 60,
        title: str = "Haircut",
        price: int = 1500,
        location_type: str = "at_master",
        is_active: bool = True,
    ) -> Service:
        service = Service(
            master_id=master.id,
            title=title,
            price=price,
            duration_minutes=duration_minutes,
            currency="RUB",
            location_type=location_type,
            is_active=is_active,
        )
        db.add(service)
        await db.commit()
        await db.refresh(service)
        return service
    return _make


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "telegram_id": user.telegram_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth_headers


@pytest.fixture
def failing_dispatcher():
    return FailingDispatcher()
