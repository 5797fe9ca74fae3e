# tests/conftest.py
import os
from typing import Any, AsyncIterator, Dict

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rovigram.database import create_tables, get_db
from rovigram.main import app as fastapi_app
from rovigram.models.user import User
from rovigram.repositories.user_repository import UserRepository
from rovigram.schemas.user import UserCreate

TEST_DB_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture()
async def engine():
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory) -> AsyncIterator[AsyncClient]:
    async def _get_db_override():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _get_db_override
    transport = ASGITransport(app=fastapi_app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as test_client:
            yield test_client
    finally:
        fastapi_app.dependency_overrides.pop(get_db, None)


async def make_user(db_session: AsyncSession, username: str, phone: str, display_name: str = None) -> User:
    """Persist a user through the repository with a known password."""
    return await UserRepository(db_session).create(
        UserCreate(
            phone=phone,
            username=username,
            display_name=display_name or username.title(),
            password="secret123",
        )
    )


@pytest_asyncio.fixture()
async def alice(db_session) -> User:
    return await make_user(db_session, "alice", "+10000000001", "Alice Liddell")


@pytest_asyncio.fixture()
async def bob(db_session) -> User:
    return await make_user(db_session, "bob", "+10000000002", "Bob Builder")


@pytest_asyncio.fixture()
async def carol(db_session) -> User:
    return await make_user(db_session, "carol", "+10000000003", "Carol Danvers")


async def register(client: AsyncClient, username: str, phone: str, display_name: str = None) -> Dict[str, Any]:
    """Register over HTTP and return the auth response plus ready-made headers."""
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "phone": phone,
            "username": username,
            "display_name": display_name or username.title(),
            "password": "secret123",
        },
    )
    assert response.status_code == 201, response.text
    client.cookies.clear()
    data = response.json()
    data["headers"] = {"Authorization": f"Bearer {data['access_token']}"}
    return data
