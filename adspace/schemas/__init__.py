"""Pydantic schemas for API validation."""

from adspace.schemas.booking import (
    BookingApprove,
    BookingCancel,
    BookingCreate,
    BookingReject,
    BookingResponse,
    BookingTransitionAt,
    LifecycleSweepResponse,
    PaymentOutcome,
)
from adspace.schemas.listing import (
    DiscountTierSchema,
    ListingCreate,
    ListingResponse,
    QuoteRequest,
    QuoteResponse,
    RateCardSchema,
    SeasonalRateSchema,
)
from adspace.schemas.reporting import (
    ReconcileRequest,
    RevenueRecordResponse,
    RevenueReport,
)

__all__ = [
    # Listing
    "DiscountTierSchema",
    "SeasonalRateSchema",
    "RateCardSchema",
    "ListingCreate",
    "ListingResponse",
    "QuoteRequest",
    "QuoteResponse",
    # Booking
    "BookingCreate",
    "BookingApprove",
    "BookingReject",
    "BookingCancel",
    "BookingTransitionAt",
    "PaymentOutcome",
    "BookingResponse",
    "LifecycleSweepResponse",
    # Reporting
    "ReconcileRequest",
    "RevenueRecordResponse",
    "RevenueReport",
]
