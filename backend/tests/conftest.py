import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sitedesk.config import settings
from sitedesk.database import get_db
from sitedesk.main import app
from sitedesk.models import Base, Site, User

TEST_ENCRYPTION_KEY = "test-encryption-passphrase"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    monkeypatch.setattr(settings, "app_encryption_key", TEST_ENCRYPTION_KEY)
    monkeypatch.setattr(settings, "google_pagespeed_api_key", "test-pagespeed-key")
    monkeypatch.setattr(settings, "run_scheduler", False)
    return settings


@pytest_asyncio.fixture
async def db():
    """In-memory SQLite database with foreign keys enforced."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def user(db: AsyncSession) -> User:
    user = User(name="Alice Martin", email="alice@example.com")
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def make_site(db: AsyncSession):
    counter = {"n": 0}

    async def _make(**overrides) -> Site:
        counter["n"] += 1
        values = {
            "name": f"Site {counter['n']}",
            "url": f"https://site{counter['n']}.example.com",
            "type": "WordPress",
            "team": "quai13",
        }
        values.update(overrides)
        site = Site(**values)
        db.add(site)
        await db.commit()
        return site

    return _make


@pytest_asyncio.fixture
async def client(db: AsyncSession, user: User):
    async def _get_test_db():
        yield db

    app.dependency_overrides[get_db] = _get_test_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-Id": str(user.id)},
    ) as http_client:
        yield http_client
    app.dependency_overrides.clear()


def mock_client(handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by ``handler(request)``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
