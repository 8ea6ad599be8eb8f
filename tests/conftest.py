"""
Shared fixtures: an isolated SQLite database per test, a trip owner and an
HTTP client bound to the FastAPI app.
"""
import os

# Must be set before travelplan.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from travelplan.main import app
from travelplan.infrastructure.database import Base, build_engine, get_db
from travelplan.auth import UserModel, create_access_token
from travelplan.application.trip_service import TripService
from travelplan.domain.schemas import TripCreateRequest


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'travelplan.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def user(db):
    user = UserModel(email="traveller@example.com", display_name="Traveller")
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
def user_id(user):
    return user.id


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
async def other_auth_headers(db):
    other = UserModel(email="someone-else@example.com")
    db.add(other)
    await db.commit()
    return {"Authorization": f"Bearer {create_access_token(other.id)}"}


@pytest.fixture
def make_trip(db, user_id):
    """Factory creating a trip (with its days) for the default user."""
    async def _make_trip(name: str = "Alps", start: date = date(2024, 6, 1), end: date = date(2024, 6, 3)):
        return await TripService().create_trip(
            db, user_id, TripCreateRequest(name=name, start_date=start, end_date=end)
        )
    return _make_trip
