import os

# Settings are read at import time; point them at throwaway values first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_LOGIN"] = "1000/minute"
os.environ["JWT_SECRET_KEY"] = "test-secret"

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from inventory_portal.clock import current_time  # noqa: E402
from inventory_portal.database import Base, get_db, get_session_factory  # noqa: E402
from inventory_portal.extensions import limiter  # noqa: E402
from inventory_portal.main import app  # noqa: E402
from inventory_portal.models import InventoryItem, User  # noqa: E402
from inventory_portal.services.auth import hash_password, token_for  # noqa: E402

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def overrides(session_factory):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[current_time] = lambda: NOW
    limiter.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client(overrides):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def server_error_client(overrides):
    """Client that receives the 500 response instead of the raised exception."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def add_user(factory, username, role="ojt", password="secret123", is_active=True) -> User:
    async with factory() as session:
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


async def add_item(factory, **fields) -> InventoryItem:
    values = {
        "building": "Main",
        "floor": "1",
        "room_name_or_number": "101",
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(fields)
    async with factory() as session:
        item = InventoryItem(**values)
        session.add(item)
        await session.commit()
        await session.refresh(item)
        return item


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
async def admin(session_factory):
    return await add_user(session_factory, "admin", role="admin", password="adminpass")


@pytest.fixture
async def trainee(session_factory):
    return await add_user(session_factory, "trainee", role="ojt", password="trainee123")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def trainee_headers(trainee):
    return auth_headers(trainee)
