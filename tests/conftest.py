"""Shared fixtures: in-memory database, API client and record factories."""
from datetime import datetime, date
from decimal import Decimal
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  (registers tables)
from app.database import Base, get_db
from app.main import app as fastapi_app
from app.models import (
    Product,
    Order,
    OrderItem,
    OperationalCost,
    Partner,
)
from app.services.order_pricing_service import build_order
from tests.factories import product_record, orm_product


@pytest.fixture
def product():
    """Plain product record: base 80, wholesale 100, MOQ 10, three tiers."""
    return product_record()


# =============================================================================
# DATABASE
# =============================================================================

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()


# =============================================================================
# ORM FACTORIES
# =============================================================================

@pytest.fixture
def make_product(db):
    async def factory(**overrides) -> Product:
        product = orm_product(**overrides)
        db.add(product)
        await db.flush()
        return product

    return factory


@pytest.fixture
def make_order(db):
    async def factory(
        product: Product,
        quantity: int,
        status: str = "DELIVERED",
        created_at: datetime = None,
        shipping=0,
    ) -> Order:
        order = build_order(
            f"ORD-{uuid.uuid4().hex[:10].upper()}",
            [(product, quantity)],
            shipping=shipping,
            status=status,
        )
        if created_at is not None:
            order.created_at = created_at
            order.updated_at = created_at
        db.add(order)
        await db.flush()
        return order

    return factory


@pytest.fixture
def make_legacy_order(db):
    """Order whose single line predates cost snapshots."""
    async def factory(product: Product, quantity: int, unit_price, created_at: datetime) -> Order:
        unit_price = Decimal(str(unit_price))
        order = Order(
            order_number=f"LEG-{uuid.uuid4().hex[:10].upper()}",
            status="DELIVERED",
            subtotal=unit_price * quantity,
            shipping=Decimal("0"),
            total=unit_price * quantity,
            created_at=created_at,
            updated_at=created_at,
            items=[
                OrderItem(
                    product_id=product.id,
                    product=product,
                    quantity=quantity,
                    price=unit_price,
                    total=unit_price * quantity,
                )
            ],
        )
        db.add(order)
        await db.flush()
        return order

    return factory


@pytest.fixture
def make_cost(db):
    async def factory(amount, cost_date: date, category: str = "RENT") -> OperationalCost:
        cost = OperationalCost(category=category, amount=Decimal(str(amount)), cost_date=cost_date)
        db.add(cost)
        await db.flush()
        return cost

    return factory


@pytest.fixture
def make_partner(db):
    async def factory(name: str, share, is_active: bool = True) -> Partner:
        partner = Partner(
            name=name,
            email=f"{name.lower().replace(' ', '.')}@example.com",
            profit_share_percentage=Decimal(str(share)),
            is_active=is_active,
        )
        db.add(partner)
        await db.flush()
        return partner

    return factory

