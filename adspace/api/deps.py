"""API dependencies for repositories and services."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from adspace.database import get_db
from adspace.repositories.base import BookingRepository
from adspace.repositories.sql import SqlBookingRepository
from adspace.services.booking_service import BookingService
from adspace.services.pricing_service import PricingService
from adspace.services.reconciliation_service import ReconciliationService


async def get_repository(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BookingRepository:
    """Repository bound to the request's database session."""
    return SqlBookingRepository(db)


def get_pricing_service() -> PricingService:
    return PricingService()


async def get_booking_service(
    repository: Annotated[BookingRepository, Depends(get_repository)],
    pricing: Annotated[PricingService, Depends(get_pricing_service)],
) -> BookingService:
    return BookingService(repository, pricing=pricing)


async def get_reconciliation_service(
    repository: Annotated[BookingRepository, Depends(get_repository)],
) -> ReconciliationService:
    return ReconciliationService(repository)


Bookings = Annotated[BookingService, Depends(get_booking_service)]
Reconciliation = Annotated[ReconciliationService, Depends(get_reconciliation_service)]
