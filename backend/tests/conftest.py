"""Shared fixtures for the MES backend tests."""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-mes-tests")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from mes.core.database import Base
from mes.core.security import hash_password
import mes.models  # noqa: F401
from mes.models.user import User
from mes.services.material_service import MaterialService
from mes.services.product_service import ProductService
from mes.services.production_service import ProductionService


# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def admin_user(test_session):
    user = User(
        username="admin",
        password_hash=hash_password("admin123"),
        email="admin@example.com",
        role="admin",
    )
    test_session.add(user)
    await test_session.commit()
    return user


@pytest.fixture
async def product(test_session):
    return await ProductService(test_session).create_product(
        code="P001", name="Gear Box", unit="pcs", price=120.5
    )


@pytest.fixture
async def order(test_session, product, admin_user):
    return await ProductionService(test_session).create_order(
        product_id=product.id, quantity=100, created_by=admin_user.id
    )


@pytest.fixture
async def material(test_session):
    return await MaterialService(test_session).create_material(
        code="M001", name="Steel Plate", type="raw", unit="kg", price=12.5, min_stock=10, max_stock=500
    )
