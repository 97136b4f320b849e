"""Shared test fixtures for the AI Voicemail API tests.

Uses an in-memory SQLite async engine so tests run without PostgreSQL.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings, get_settings
from app.core.database import Base, get_db
from app.main import app

# Import all models to ensure they're registered with Base.metadata
from app.models.business import Business
from app.models.call import Call  # noqa: F401
from app.models.enterprise_inquiry import EnterpriseInquiry  # noqa: F401
from app.models.user import User
from app.services.auth import create_access_token, hash_password

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_JWT_SECRET = "test-secret-key"
TEST_PUBLIC_BASE_URL = "https://api.test"

engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
TestSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


def build_settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": TEST_DATABASE_URL,
        "JWT_SECRET_KEY": TEST_JWT_SECRET,
        "PUBLIC_BASE_URL": TEST_PUBLIC_BASE_URL,
        "BLAND_API_KEY": "test-bland-key",
        "BLAND_AREA_CODE": "415",
        "TWILIO_ACCOUNT_SID": "",
        "TWILIO_AUTH_TOKEN": "",
        "TWILIO_PHONE_NUMBER": "",
        "STRIPE_API_KEY": "",
        "STRIPE_WEBHOOK_SECRET": "",
        "SENDGRID_API_KEY": "",
        "SALES_NOTIFICATION_EMAIL": "",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def test_settings():
    """Settings every request sees; vendors unconfigured unless a test says so."""
    settings = build_settings()
    app.dependency_overrides[get_settings] = lambda: settings
    yield settings
    for dep in list(app.dependency_overrides):
        if dep is not get_db:
            app.dependency_overrides.pop(dep)


@pytest.fixture
def use_settings():
    """Swap in settings with the given overrides for the rest of the test."""
    def _use(**overrides) -> Settings:
        settings = build_settings(**overrides)
        app.dependency_overrides[get_settings] = lambda: settings
        return settings
    return _use


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session


@pytest_asyncio.fixture
async def user(db):
    user = User(
        email="owner@example.com",
        hashed_password=hash_password("testpass123"),
        full_name="Pat Owner",
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def auth_headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id)}, secret_key=TEST_JWT_SECRET)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(user):
    return auth_headers_for(user)


@pytest_asyncio.fixture
async def business(db, user):
    """An onboarded business whose AI number is +14155550100."""
    business = Business(
        user_id=user.id,
        business_name="Summit Roofing",
        owner_name="Pat Owner",
        industry="roofing",
        service_area="Oakland, CA",
        services_offered=["roofing", "plumbing"],
        business_phone="+15550002222",
        twilio_number="+14155550100",
        notification_phone="+15550001111",
        notification_email="pat@summitroofing.example",
        selected_plan="professional",
    )
    db.add(business)
    await db.commit()
    await db.refresh(business)
    return business
