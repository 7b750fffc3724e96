"""
Pytest configuration and fixtures
"""
import os
from dataclasses import dataclass
from decimal import Decimal
from typing import AsyncGenerator

# Keep the module-level engine away from any real database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from buildcost.auth import Actor, Role
from buildcost.database import get_db
from buildcost.main import app
from buildcost.models import Base, Category, Component, Merchant, Price

USER_A = Actor(id=1, role=Role.USER)
USER_B = Actor(id=2, role=Role.USER)
ADMIN = Actor(id=99, role=Role.ADMIN)


def headers_for(actor: Actor) -> dict:
    return {"X-User-Id": str(actor.id), "X-User-Role": actor.role.value}


@dataclass
class SeededCatalog:
    """Plain ids so tests never touch expired ORM state."""

    cpu_category_id: int
    gpu_category_id: int
    cpu_id: int
    gpu_id: int
    retired_id: int
    shop_id: int
    other_shop_id: int


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(db: AsyncSession) -> SeededCatalog:
    """
    Two categories, three components (one inactive), two merchants and
    one listed price: CPU at the first shop for 650.00.
    """
    cpu_category = Category(name="CPU", description="Central Processing Unit")
    gpu_category = Category(name="GPU", description="Graphics Processing Unit")
    db.add_all([cpu_category, gpu_category])
    await db.flush()

    cpu = Component(
        category_id=cpu_category.id,
        brand="Intel",
        model="i9-12900K",
        title="Intel Core i9-12900K",
        description="High-end desktop processor",
        specifications={"cores": "16", "threads": "24"},
        image_url="https://example.com/i9.jpg",
    )
    gpu = Component(
        category_id=gpu_category.id,
        brand="NVIDIA",
        model="RTX 4070",
        title="GeForce RTX 4070",
        description="Graphics card",
        specifications={"memory": "12 GB"},
        image_url="https://example.com/4070.jpg",
    )
    retired = Component(
        category_id=cpu_category.id,
        brand="Intel",
        model="i7-7700K",
        title="Intel Core i7-7700K",
        description="Discontinued",
        specifications={},
        image_url="https://example.com/i7.jpg",
        active=False,
    )
    shop = Merchant(
        name="LDLC", url="https://www.ldlc.com", api_key="secret-1", commission_rate=Decimal("5")
    )
    other_shop = Merchant(
        name="Materiel.net", url="https://www.materiel.net", api_key="secret-2",
        commission_rate=Decimal("3.5"),
    )
    db.add_all([cpu, gpu, retired, shop, other_shop])
    await db.flush()

    db.add(
        Price(
            component_id=cpu.id,
            merchant_id=shop.id,
            unit_price=Decimal("650.00"),
            product_url="https://www.ldlc.com/i9",
        )
    )
    await db.commit()

    return SeededCatalog(
        cpu_category_id=cpu_category.id,
        gpu_category_id=gpu_category.id,
        cpu_id=cpu.id,
        gpu_id=gpu.id,
        retired_id=retired.id,
        shop_id=shop.id,
        other_shop_id=other_shop.id,
    )


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client bound to the app, with sessions from the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()
