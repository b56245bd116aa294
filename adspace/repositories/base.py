"""Booking repository interface.

All writes for a listing happen inside `listing_transaction(listing_id)`,
which serialises them per listing. Different listings never wait on each
other.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractAsyncContextManager
from datetime import date
from decimal import Decimal
from uuid import UUID

from adspace.domain.booking_state import BookingStatus
from adspace.domain.periods import ReportingPeriod
from adspace.models.booking import Booking
from adspace.models.financial import LedgerEntry, RevenueRecord
from adspace.models.listing import Listing

REVENUE_RECOGNIZED = "revenue_recognized"


class BookingRepository(ABC):
    """Persistence for listings, bookings, ledger and revenue records."""

    @abstractmethod
    def listing_transaction(self, listing_id: UUID) -> AbstractAsyncContextManager[None]:
        """Atomic, serialised unit of work for one listing."""

    # Listings

    @abstractmethod
    async def get_listing(self, listing_id: UUID) -> Listing | None: ...

    @abstractmethod
    async def add_listing(self, listing: Listing) -> Listing: ...

    @abstractmethod
    async def save_listing(self, listing: Listing) -> Listing: ...

    @abstractmethod
    async def delete_listing(self, listing_id: UUID) -> None:
        """Delete a listing; refused while it has bookings that are not archived."""

    # Bookings

    @abstractmethod
    async def get_booking(self, booking_id: UUID) -> Booking | None: ...

    @abstractmethod
    async def list_bookings(
        self,
        listing_id: UUID,
        statuses: Iterable[BookingStatus] | None = None,
        include_archived: bool = True,
    ) -> list[Booking]: ...

    @abstractmethod
    async def find_overlapping(
        self,
        listing_id: UUID,
        start_date: date,
        end_date: date,
        statuses: Iterable[BookingStatus],
    ) -> list[Booking]:
        """Bookings of a listing in `statuses` intersecting [start_date, end_date)."""

    @abstractmethod
    async def booking_number_exists(self, booking_number: str) -> bool: ...

    @abstractmethod
    async def add_booking(self, booking: Booking) -> Booking: ...

    @abstractmethod
    async def save_booking(self, booking: Booking) -> Booking: ...

    @abstractmethod
    async def due_bookings(self, as_of: date) -> list[Booking]:
        """Approved bookings that have started and active bookings that have ended."""

    # Ledger & reporting

    @abstractmethod
    async def append_ledger_entry(self, entry: LedgerEntry) -> LedgerEntry: ...

    @abstractmethod
    async def snapshot_period(self, period: ReportingPeriod) -> tuple[list[Booking], Decimal]:
        """Completed bookings intersecting the period and the ledger total, read consistently."""

    @abstractmethod
    async def replace_revenue_records(
        self, period: ReportingPeriod, records: list[RevenueRecord]
    ) -> list[RevenueRecord]: ...

    @abstractmethod
    async def get_revenue_records(self, period: ReportingPeriod) -> list[RevenueRecord]: ...
