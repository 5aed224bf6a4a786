"""
Test fixtures and configuration for pytest.
"""

import os
import sys
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from db.database import Base, enable_sqlite_foreign_keys, get_db
from models import Category, Role, Subcategory, User
from services.auth import hash_password

# Test database URL (SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(TEST_DATABASE_URL, echo=False)
event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)
TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

TEST_PASSWORD = "secret123"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestingSessionLocal() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ============== Test Data Fixtures ==============


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """A user with the admin role and a known password."""
    role = Role(name="admin", description="Full access")
    user = User(
        name="Admin",
        email="admin@example.com",
        password=hash_password(TEST_PASSWORD),
        roles=[role],
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def sample_category(db_session: AsyncSession) -> Category:
    category = Category(name="Dresses", description="Evening and day dresses")
    db_session.add(category)
    await db_session.commit()
    await db_session.refresh(category)
    return category


@pytest_asyncio.fixture
async def sample_subcategories(
    db_session: AsyncSession, sample_category: Category
) -> list[Subcategory]:
    """Five subcategories under ``sample_category``, ids ascending."""
    subcategories = [
        Subcategory(category_id=sample_category.id, name=name)
        for name in ("Evening", "Cocktail", "Bridal", "Casual", "Maxi")
    ]
    db_session.add_all(subcategories)
    await db_session.commit()
    for subcategory in subcategories:
        await db_session.refresh(subcategory)
    return subcategories


# ============== Client Fixtures ==============


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database override."""
    from main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def auth_client(client: AsyncClient, admin_user: User) -> AsyncClient:
    """``client`` carrying a bearer token obtained through /login."""
    response = await client.post(
        "/api/v1/login",
        json={"email": admin_user.email, "password": TEST_PASSWORD},
    )
    assert response.status_code == 200, response.text
    client.headers["Authorization"] = f"Bearer {response.json()['token']}"
    return client
