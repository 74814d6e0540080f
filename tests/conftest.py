from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from app.api.v1.users import service as user_service
from app.core.enums import Role
from app.db.schema import init_db
from app.db.session import create_engine_for, create_sessionmaker, get_db
from app.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory store with all tables for each test."""
    test_engine = create_engine_for(TEST_DATABASE_URL)
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = create_sessionmaker(engine)

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def users(db_session: AsyncSession) -> Dict[str, int]:
    """One account per role. Every password is 'secret'."""
    admin = await user_service.create_user(db_session, "admin", "secret", Role.ADMIN)
    marker = await user_service.create_user(db_session, "marker", "secret", Role.ATTENDANCE_TEACHER)
    batch_teacher = await user_service.create_user(db_session, "bt", "secret", Role.BATCH_TEACHER)
    return {"admin": admin.id, "marker": marker.id, "bt": batch_teacher.id}


@pytest.fixture()
def auth_headers(client: AsyncClient):
    """Log in through the API and return the bearer header for that user."""

    async def _login(username: str, password: str = "secret") -> Dict[str, str]:
        response = await client.post("/api/v1/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login
