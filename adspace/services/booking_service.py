"""Booking lifecycle service.

Every state change goes through this service:

    pending  -> approved | rejected | cancelled
    approved -> active (start date reached) | cancelled
    active   -> completed (end date reached) | cancelled

Creation and transitions run inside the listing's transaction, so two
overlapping requests for the same listing cannot both be accepted. Role
checks are the caller's job; actor ids are recorded as given.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Iterable
from uuid import UUID, uuid4

from adspace.config import settings
from adspace.core.exceptions import (
    DateRangeConflict,
    InvalidTransition,
    NotFoundError,
)
from adspace.domain.booking_state import (
    OPEN_STATUSES,
    BookingStatus,
    assert_booking_transition,
    is_terminal,
)
from adspace.domain.periods import local_today
from adspace.domain.pricing import RateCard
from adspace.domain.refund_policy import RefundPolicy, calculate_refund
from adspace.models.booking import Booking
from adspace.models.financial import LedgerEntry
from adspace.models.listing import Listing
from adspace.repositories.base import REVENUE_RECOGNIZED, BookingRepository
from adspace.services.pricing_service import PricingService, Quote
from adspace.utils.booking_number import generate_booking_number

logger = logging.getLogger(__name__)

PAYMENT_FAILED_REASON = "payment_failed"


@dataclass(frozen=True)
class _DueBooking:
    id: UUID
    booking_number: str
    status: BookingStatus
    end_date: date


@dataclass
class LifecycleSweepResult:
    activated: int = 0
    completed: int = 0


class BookingService:
    """Booking lifecycle over a per-listing serialised repository."""

    def __init__(
        self,
        repository: BookingRepository,
        pricing: PricingService | None = None,
        refund_policy: RefundPolicy | None = None,
    ) -> None:
        self.repository = repository
        self.pricing = pricing or PricingService()
        self.refund_policy = refund_policy or RefundPolicy.from_pairs(settings.default_refund_policy)

    # ==================== LISTINGS ====================

    async def get_listing(self, listing_id: UUID) -> Listing:
        listing = await self.repository.get_listing(listing_id)
        if listing is None:
            raise NotFoundError("Listing", str(listing_id))
        return listing

    async def create_listing(
        self,
        owner_id: UUID,
        title: str,
        rate_card: RateCard,
        city: str | None = None,
    ) -> Listing:
        now = datetime.now(UTC)
        listing = Listing(
            id=uuid4(),
            owner_id=owner_id,
            title=title,
            city=city,
            created_at=now,
            updated_at=now,
        )
        listing.apply_rate_card(rate_card)
        await self.repository.add_listing(listing)
        logger.info(f"Listing {listing.id} created for owner {owner_id}")
        return listing

    async def update_rate_card(self, listing_id: UUID, rate_card: RateCard) -> Listing:
        """Replace a listing's rate card; existing bookings keep their prices."""
        async with self.repository.listing_transaction(listing_id):
            listing = await self.get_listing(listing_id)
            listing.apply_rate_card(rate_card)
            await self.repository.save_listing(listing)
        logger.info(f"Rate card updated for listing {listing_id}")
        return listing

    async def delete_listing(self, listing_id: UUID) -> None:
        """Delete a listing once all of its bookings are archived."""
        async with self.repository.listing_transaction(listing_id):
            await self.get_listing(listing_id)
            await self.repository.delete_listing(listing_id)
        logger.info(f"Listing {listing_id} deleted")

    async def quote(self, listing_id: UUID, start_date: date, end_date: date) -> Quote:
        listing = await self.get_listing(listing_id)
        return self.pricing.quote(listing.to_rate_card(), start_date, end_date)

    # ==================== BOOKINGS ====================

    async def get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.repository.get_booking(booking_id)
        if booking is None:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def list_bookings(
        self,
        listing_id: UUID,
        statuses: Iterable[BookingStatus] | None = None,
        include_archived: bool = True,
    ) -> list[Booking]:
        return await self.repository.list_bookings(listing_id, statuses, include_archived)

    async def create_booking(
        self,
        listing_id: UUID,
        requester_id: UUID,
        start_date: date,
        end_date: date,
    ) -> Booking:
        """Price and reserve [start_date, end_date) as a pending booking.

        Raises:
            NotFoundError: unknown listing
            InvalidDateRange / BelowMinimumDays / InvalidAmount: pricing failed
            DateRangeConflict: an open booking already holds some of the dates
        """
        async with self.repository.listing_transaction(listing_id):
            listing = await self.get_listing(listing_id)

            # Price first: nothing is written if pricing fails
            quote = self.pricing.quote(listing.to_rate_card(), start_date, end_date)

            conflicts = await self.repository.find_overlapping(
                listing_id, start_date, end_date, OPEN_STATUSES
            )
            if conflicts:
                logger.info(
                    f"Booking request for listing {listing_id} {start_date}..{end_date} "
                    f"conflicts with {conflicts[0].booking_number}"
                )
                raise DateRangeConflict(
                    f"Listing is already booked between {conflicts[0].start_date} "
                    f"and {conflicts[0].end_date}"
                )

            booking_number = await generate_booking_number(self.repository.booking_number_exists)
            booking = self._build_booking(listing_id, requester_id, booking_number, quote)
            await self.repository.add_booking(booking)

        logger.info(
            f"Booking {booking.booking_number} created for listing {listing_id}: "
            f"{start_date}..{end_date}, final_amount={booking.final_amount}"
        )
        return booking

    def _build_booking(
        self, listing_id: UUID, requester_id: UUID, booking_number: str, quote: Quote
    ) -> Booking:
        now = datetime.now(UTC)
        return Booking(
            id=uuid4(),
            booking_number=booking_number,
            listing_id=listing_id,
            requester_id=requester_id,
            start_date=quote.start_date,
            end_date=quote.end_date,
            total_days=quote.total_days,
            base_amount=quote.price.base_amount,
            discount_percent=quote.price.discount_percent,
            discount_amount=quote.price.discount_amount,
            multiplier=quote.price.multiplier,
            gross_amount=quote.price.subtotal,
            commission_rate=quote.split.commission_rate,
            commission_amount=quote.split.commission,
            net_amount=quote.split.net,
            tax_rate=quote.split.tax_rate,
            tax_amount=quote.split.tax,
            final_amount=quote.split.final_amount,
            currency=quote.currency,
            status=BookingStatus.PENDING,
            payment_status="pending",
            refund_percent=0,
            refund_amount=0,
            created_at=now,
            updated_at=now,
        )

    @asynccontextmanager
    async def _locked_booking(self, booking_id: UUID) -> AsyncIterator[Booking]:
        """Load a booking, lock its listing, then re-read it under the lock."""
        booking = await self.get_booking(booking_id)
        async with self.repository.listing_transaction(booking.listing_id):
            booking = await self.get_booking(booking_id)
            yield booking
            booking.updated_at = datetime.now(UTC)
            await self.repository.save_booking(booking)

    def _transition(self, booking: Booking, target: BookingStatus) -> BookingStatus:
        previous = BookingStatus(booking.status)
        assert_booking_transition(previous, target)
        booking.status = target
        return previous

    def _reject(self, booking: Booking, approver_id: UUID, reason: str | None) -> None:
        self._transition(booking, BookingStatus.REJECTED)
        booking.rejected_by = approver_id
        booking.rejection_reason = reason
        booking.rejected_at = datetime.now(UTC)

    async def approve(self, booking_id: UUID, approver_id: UUID) -> Booking:
        """Approve a pending booking (owner/admin)."""
        async with self._locked_booking(booking_id) as booking:
            self._transition(booking, BookingStatus.APPROVED)
            booking.approved_by = approver_id
            booking.approved_at = datetime.now(UTC)

        logger.info(f"Booking {booking.booking_number} approved by {approver_id}")
        return booking

    async def reject(self, booking_id: UUID, approver_id: UUID, reason: str | None = None) -> Booking:
        """Reject a pending booking (owner/admin or failed payment)."""
        async with self._locked_booking(booking_id) as booking:
            self._reject(booking, approver_id, reason)

        logger.info(f"Booking {booking.booking_number} rejected by {approver_id}: {reason}")
        return booking

    async def activate(self, booking_id: UUID, now: date | None = None) -> Booking:
        """Move an approved booking to active once its start date is reached."""
        today = _as_date(now)
        async with self._locked_booking(booking_id) as booking:
            if today < booking.start_date:
                raise InvalidTransition(
                    f"Booking {booking.booking_number} starts on {booking.start_date}"
                )
            self._transition(booking, BookingStatus.ACTIVE)
            booking.activated_at = datetime.now(UTC)

        logger.info(f"Booking {booking.booking_number} is now active")
        return booking

    async def complete(self, booking_id: UUID, now: date | None = None) -> Booking:
        """Complete an active booking once its end date is reached and recognise revenue."""
        today = _as_date(now)
        async with self._locked_booking(booking_id) as booking:
            if today < booking.end_date:
                raise InvalidTransition(
                    f"Booking {booking.booking_number} runs until {booking.end_date}"
                )
            self._transition(booking, BookingStatus.COMPLETED)
            booking.completed_at = datetime.now(UTC)

            await self.repository.append_ledger_entry(
                LedgerEntry(
                    id=uuid4(),
                    entry_type=REVENUE_RECOGNIZED,
                    direction="credit",
                    amount=booking.final_amount,
                    currency=booking.currency,
                    listing_id=booking.listing_id,
                    booking_id=booking.id,
                    service_start=booking.start_date,
                    service_end=booking.end_date,
                    effective_date=booking.end_date,
                    description=f"Revenue for booking {booking.booking_number}",
                )
            )

        logger.info(
            f"Booking {booking.booking_number} completed, revenue {booking.final_amount} recognised"
        )
        return booking

    async def cancel(
        self,
        booking_id: UUID,
        actor_id: UUID,
        cancel_date: date | None = None,
        reason: str | None = None,
    ) -> Booking:
        """Cancel a pending, approved or active booking and record its refund."""
        cancel_date = _as_date(cancel_date)
        async with self._locked_booking(booking_id) as booking:
            assert_booking_transition(booking.status, BookingStatus.CANCELLED)

            outcome = calculate_refund(
                self.refund_policy, booking.final_amount, booking.start_date, cancel_date
            )
            booking.refund_percent = outcome.refund_percent
            booking.refund_amount = outcome.refund_amount
            booking.cancel_date = cancel_date
            booking.cancelled_by = actor_id
            booking.cancellation_reason = reason

            self._transition(booking, BookingStatus.CANCELLED)
            booking.cancelled_at = datetime.now(UTC)

        logger.info(
            f"Booking {booking.booking_number} cancelled by {actor_id} "
            f"{outcome.days_before_start} day(s) before start: "
            f"refund {outcome.refund_percent}% = {outcome.refund_amount}"
        )
        return booking

    async def record_payment(self, booking_id: UUID, succeeded: bool, actor_id: UUID | None = None) -> Booking:
        """Apply the payment collaborator's outcome for a booking's final amount.

        A failed charge rejects a pending booking instead of leaving it pending.
        """
        async with self._locked_booking(booking_id) as booking:
            if booking.status in (BookingStatus.REJECTED, BookingStatus.CANCELLED):
                raise InvalidTransition(
                    f"Cannot record payment for {booking.status.value} booking {booking.booking_number}"
                )
            rejected = not succeeded and booking.status == BookingStatus.PENDING
            if rejected:
                self._reject(booking, actor_id or booking.requester_id, PAYMENT_FAILED_REASON)
            booking.payment_status = "paid" if succeeded else "failed"

        if rejected:
            logger.warning(f"Payment failed for booking {booking.booking_number}; booking rejected")
            return booking
        logger.info(f"Payment {booking.payment_status} for booking {booking.booking_number}")
        return booking

    async def archive(self, booking_id: UUID) -> Booking:
        """Archive a finished booking; bookings are never deleted."""
        async with self._locked_booking(booking_id) as booking:
            if not is_terminal(booking.status):
                raise InvalidTransition(
                    f"Only completed, rejected or cancelled bookings can be archived "
                    f"(booking {booking.booking_number} is {booking.status.value})"
                )
            if booking.archived_at is None:
                booking.archived_at = datetime.now(UTC)

        logger.info(f"Booking {booking.booking_number} archived")
        return booking

    # ==================== SCHEDULER ====================

    async def advance_due_bookings(self, now: date | None = None) -> LifecycleSweepResult:
        """Activate and complete every booking whose dates have elapsed.

        Called by the scheduler. A booking that both started and ended since
        the last sweep is activated and completed in the same pass.
        """
        today = _as_date(now)
        result = LifecycleSweepResult()

        # Plain copies: a failed transition rolls back the session and expires
        # every loaded booking
        due_bookings = [
            _DueBooking(b.id, b.booking_number, BookingStatus(b.status), b.end_date)
            for b in await self.repository.due_bookings(today)
        ]

        for due in due_bookings:
            try:
                if due.status == BookingStatus.APPROVED:
                    await self.activate(due.id, today)
                    result.activated += 1
                if due.end_date <= today:
                    await self.complete(due.id, today)
                    result.completed += 1
            except InvalidTransition as e:
                # Changed concurrently (e.g. cancelled) since the sweep query
                logger.info(f"Skipping booking {due.booking_number}: {e}")

        logger.info(
            f"Lifecycle sweep for {today}: activated={result.activated}, completed={result.completed}"
        )
        return result


def platform_today() -> date:
    """Today in the platform timezone; booking dates are local calendar days."""
    return local_today(settings.timezone)


def _as_date(value: date | datetime | None) -> date:
    if value is None:
        return platform_today()
    if isinstance(value, datetime):
        return value.date()
    return value
