"""In-process repository: arenas keyed by listing id, one asyncio lock per listing."""

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from uuid import UUID

from adspace.core.exceptions import ListingHasBookings
from adspace.domain.booking_state import BookingStatus
from adspace.domain.periods import ReportingPeriod, ranges_overlap
from adspace.models.booking import Booking
from adspace.models.financial import LedgerEntry, RevenueRecord
from adspace.models.listing import Listing
from adspace.repositories.base import REVENUE_RECOGNIZED, BookingRepository


class InMemoryBookingRepository(BookingRepository):
    """Repository for tests and single-process deployments."""

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._listings: dict[UUID, Listing] = {}
        self._bookings_by_listing: defaultdict[UUID, dict[UUID, Booking]] = defaultdict(dict)
        self._booking_index: dict[UUID, UUID] = {}  # booking id -> listing id
        self._ledger: list[LedgerEntry] = []
        self._revenue: dict[tuple[date, date], list[RevenueRecord]] = {}

    @asynccontextmanager
    async def listing_transaction(self, listing_id: UUID) -> AsyncIterator[None]:
        # Unknown ids get a throwaway lock; only stored listings keep one
        lock = self._locks.get(listing_id) or asyncio.Lock()
        async with lock:
            yield

    async def get_listing(self, listing_id: UUID) -> Listing | None:
        return self._listings.get(listing_id)

    async def add_listing(self, listing: Listing) -> Listing:
        self._listings[listing.id] = listing
        self._locks.setdefault(listing.id, asyncio.Lock())
        return listing

    async def save_listing(self, listing: Listing) -> Listing:
        self._listings[listing.id] = listing
        return listing

    async def delete_listing(self, listing_id: UUID) -> None:
        open_count = sum(
            1
            for b in self._bookings_by_listing.get(listing_id, {}).values()
            if b.archived_at is None
        )
        if open_count:
            raise ListingHasBookings(str(listing_id), open_count)
        self._listings.pop(listing_id, None)
        self._locks.pop(listing_id, None)
        # Archived bookings outlive the listing
        if not self._bookings_by_listing.get(listing_id):
            self._bookings_by_listing.pop(listing_id, None)

    async def get_booking(self, booking_id: UUID) -> Booking | None:
        listing_id = self._booking_index.get(booking_id)
        if listing_id is None:
            return None
        return self._bookings_by_listing.get(listing_id, {}).get(booking_id)

    async def list_bookings(
        self,
        listing_id: UUID,
        statuses: Iterable[BookingStatus] | None = None,
        include_archived: bool = True,
    ) -> list[Booking]:
        wanted = set(statuses) if statuses is not None else None
        bookings = [
            b
            for b in self._bookings_by_listing.get(listing_id, {}).values()
            if (wanted is None or b.status in wanted)
            and (include_archived or b.archived_at is None)
        ]
        return sorted(bookings, key=lambda b: (b.start_date, b.booking_number))

    async def find_overlapping(
        self,
        listing_id: UUID,
        start_date: date,
        end_date: date,
        statuses: Iterable[BookingStatus],
    ) -> list[Booking]:
        wanted = set(statuses)
        return [
            b
            for b in self._bookings_by_listing.get(listing_id, {}).values()
            if b.status in wanted and ranges_overlap(b.start_date, b.end_date, start_date, end_date)
        ]

    async def booking_number_exists(self, booking_number: str) -> bool:
        return any(
            b.booking_number == booking_number
            for bookings in self._bookings_by_listing.values()
            for b in bookings.values()
        )

    async def add_booking(self, booking: Booking) -> Booking:
        self._bookings_by_listing[booking.listing_id][booking.id] = booking
        self._booking_index[booking.id] = booking.listing_id
        return booking

    async def save_booking(self, booking: Booking) -> Booking:
        return booking

    async def due_bookings(self, as_of: date) -> list[Booking]:
        due = []
        for bookings in self._bookings_by_listing.values():
            for b in bookings.values():
                if b.status == BookingStatus.APPROVED and b.start_date <= as_of:
                    due.append(b)
                elif b.status == BookingStatus.ACTIVE and b.end_date <= as_of:
                    due.append(b)
        return sorted(due, key=lambda b: (b.start_date, b.booking_number))

    async def append_ledger_entry(self, entry: LedgerEntry) -> LedgerEntry:
        self._ledger.append(entry)
        return entry

    async def snapshot_period(self, period: ReportingPeriod) -> tuple[list[Booking], Decimal]:
        # No awaits below: the view cannot interleave with a listing transaction
        completed = [
            b
            for bookings in self._bookings_by_listing.values()
            for b in bookings.values()
            if b.status == BookingStatus.COMPLETED and period.intersects(b.start_date, b.end_date)
        ]
        ledger_total = sum(
            (
                e.amount
                for e in self._ledger
                if e.entry_type == REVENUE_RECOGNIZED
                and period.intersects(e.service_start, e.service_end)
            ),
            Decimal("0"),
        )
        return completed, ledger_total

    async def replace_revenue_records(
        self, period: ReportingPeriod, records: list[RevenueRecord]
    ) -> list[RevenueRecord]:
        self._revenue[(period.start, period.end)] = list(records)
        return records

    async def get_revenue_records(self, period: ReportingPeriod) -> list[RevenueRecord]:
        return list(self._revenue.get((period.start, period.end), []))
