"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from adspace.domain.booking_state import BookingStatus


class BookingCreate(BaseModel):
    """Schema for requesting a booking; end_date is exclusive."""

    listing_id: UUID
    requester_id: UUID
    start_date: date
    end_date: date


class BookingApprove(BaseModel):
    approver_id: UUID


class BookingReject(BaseModel):
    approver_id: UUID
    reason: str | None = Field(None, max_length=500)


class BookingCancel(BaseModel):
    """Cancellation request. cancel_date defaults to today."""

    actor_id: UUID
    cancel_date: date | None = None
    reason: str | None = Field(None, max_length=500)


class BookingTransitionAt(BaseModel):
    """Activate/complete request. `as_of` defaults to today."""

    as_of: date | None = None


class PaymentOutcome(BaseModel):
    """Result reported by the payment collaborator."""

    succeeded: bool
    actor_id: UUID | None = None


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_number: str
    listing_id: UUID
    requester_id: UUID

    # Dates
    start_date: date
    end_date: date
    total_days: int

    # Pricing
    base_amount: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    multiplier: Decimal
    gross_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    net_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    final_amount: Decimal
    currency: str

    # Status
    status: BookingStatus
    payment_status: str

    # Approval / cancellation
    approved_by: UUID | None = None
    rejected_by: UUID | None = None
    rejection_reason: str | None = None
    cancelled_by: UUID | None = None
    cancellation_reason: str | None = None
    cancel_date: date | None = None
    refund_percent: Decimal | None = None
    refund_amount: Decimal | None = None

    # Timestamps
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    activated_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    archived_at: datetime | None = None
    created_at: datetime | None = None


class LifecycleSweepResponse(BaseModel):
    as_of: date
    activated: int
    completed: int
