"""Booking endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from adspace.api.deps import Bookings
from adspace.models.booking import Booking
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
from adspace.services.booking_service import platform_today

router = APIRouter()


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(booking_data: BookingCreate, service: Bookings) -> Booking:
    """Request a booking. The booking starts pending; overlapping requests get 409."""
    return await service.create_booking(
        listing_id=booking_data.listing_id,
        requester_id=booking_data.requester_id,
        start_date=booking_data.start_date,
        end_date=booking_data.end_date,
    )


@router.post("/advance", response_model=LifecycleSweepResponse)
async def advance_bookings(
    service: Bookings,
    as_of: date | None = Query(None),
) -> LifecycleSweepResponse:
    """Activate and complete bookings whose dates have elapsed."""
    as_of = as_of or platform_today()
    result = await service.advance_due_bookings(as_of)
    return LifecycleSweepResponse(
        as_of=as_of, activated=result.activated, completed=result.completed
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: UUID, service: Bookings) -> Booking:
    return await service.get_booking(booking_id)


# ============ OWNER ACTIONS ============


@router.post("/{booking_id}/approve", response_model=BookingResponse)
async def approve_booking(booking_id: UUID, body: BookingApprove, service: Bookings) -> Booking:
    """Approve a pending booking."""
    return await service.approve(booking_id, body.approver_id)


@router.post("/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(booking_id: UUID, body: BookingReject, service: Bookings) -> Booking:
    """Reject a pending booking."""
    return await service.reject(booking_id, body.approver_id, body.reason)


# ============ LIFECYCLE ============


@router.post("/{booking_id}/activate", response_model=BookingResponse)
async def activate_booking(
    booking_id: UUID, body: BookingTransitionAt, service: Bookings
) -> Booking:
    return await service.activate(booking_id, body.as_of)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: UUID, body: BookingTransitionAt, service: Bookings
) -> Booking:
    return await service.complete(booking_id, body.as_of)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(booking_id: UUID, body: BookingCancel, service: Bookings) -> Booking:
    """Cancel a booking; the refund follows the platform refund policy."""
    return await service.cancel(booking_id, body.actor_id, body.cancel_date, body.reason)


@router.post("/{booking_id}/payment", response_model=BookingResponse)
async def record_payment(booking_id: UUID, body: PaymentOutcome, service: Bookings) -> Booking:
    """Record the payment collaborator's outcome. A failed charge rejects a pending booking."""
    return await service.record_payment(booking_id, body.succeeded, body.actor_id)


@router.post("/{booking_id}/archive", response_model=BookingResponse)
async def archive_booking(booking_id: UUID, service: Bookings) -> Booking:
    return await service.archive(booking_id)
