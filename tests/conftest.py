import uuid
from datetime import date
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from adspace.api.deps import get_repository
from adspace.core.immutability import register_immutability_enforcement
from adspace.database import Base, init_db
from adspace.domain.pricing import DiscountTier, RateCard
from adspace.domain.refund_policy import RefundPolicy
from adspace.main import app
from adspace.repositories.memory import InMemoryBookingRepository
from adspace.repositories.sql import SqlBookingRepository
from adspace.services.booking_service import BookingService
from adspace.services.pricing_service import PricingService


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def rate_card() -> RateCard:
    return RateCard(
        base_price=Decimal("1000"),
        weekend_multiplier=Decimal("1.2"),
        discount_tiers=[DiscountTier(7, Decimal("10")), DiscountTier(30, Decimal("20"))],
    )


@pytest.fixture
def pricing() -> PricingService:
    return PricingService(
        commission_rate=Decimal("10"),
        tax_rate=Decimal("18"),
        weekend_days=[5, 6],
        holidays=[],
        currency="INR",
    )


@pytest.fixture
def refund_policy() -> RefundPolicy:
    return RefundPolicy.from_pairs([(7, 100), (3, 70), (1, 50), (0, 0)])


@pytest.fixture
def repository() -> InMemoryBookingRepository:
    return InMemoryBookingRepository()


@pytest.fixture
def service(repository, pricing, refund_policy) -> BookingService:
    return BookingService(repository, pricing=pricing, refund_policy=refund_policy)


@pytest.fixture
async def listing(service, rate_card):
    return await service.create_listing(uuid.uuid4(), "MG Road Hoarding", rate_card, city="Bengaluru")


@pytest.fixture
async def sql_session():
    register_immutability_enforcement()
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await init_db(engine)
    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    async with session_maker() as session:
        yield session
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def sql_repository(sql_session) -> SqlBookingRepository:
    return SqlBookingRepository(sql_session)


@pytest.fixture
async def client(repository):
    app.dependency_overrides[get_repository] = lambda: repository
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
