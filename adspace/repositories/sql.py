"""SQLAlchemy repository.

Per-listing serialisation is a row lock on the listing (`SELECT ... FOR
UPDATE`) held for the session transaction; `listing_transaction` commits on
success and rolls back on any error.
"""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from adspace.core.exceptions import ListingHasBookings
from adspace.domain.booking_state import BookingStatus
from adspace.domain.periods import ReportingPeriod
from adspace.models.booking import Booking
from adspace.models.financial import LedgerEntry, RevenueRecord
from adspace.models.listing import Listing
from adspace.repositories.base import REVENUE_RECOGNIZED, BookingRepository


class SqlBookingRepository(BookingRepository):
    """Repository backed by an AsyncSession."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @asynccontextmanager
    async def listing_transaction(self, listing_id: UUID) -> AsyncIterator[None]:
        try:
            await self.db.execute(
                select(Listing.id).where(Listing.id == listing_id).with_for_update()
            )
            yield
            await self.db.commit()
        except BaseException:
            await self.db.rollback()
            raise

    async def get_listing(self, listing_id: UUID) -> Listing | None:
        result = await self.db.execute(
            select(Listing).where(Listing.id == listing_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def add_listing(self, listing: Listing) -> Listing:
        self.db.add(listing)
        await self.db.commit()
        return listing

    async def save_listing(self, listing: Listing) -> Listing:
        self.db.add(listing)
        await self.db.flush()
        return listing

    async def delete_listing(self, listing_id: UUID) -> None:
        count_result = await self.db.execute(
            select(func.count()).select_from(Booking).where(
                Booking.listing_id == listing_id,
                Booking.archived_at.is_(None),
            )
        )
        open_count = count_result.scalar() or 0
        if open_count:
            raise ListingHasBookings(str(listing_id), open_count)

        listing = await self.get_listing(listing_id)
        if listing is not None:
            await self.db.delete(listing)
            await self.db.flush()

    async def get_booking(self, booking_id: UUID) -> Booking | None:
        result = await self.db.execute(
            select(Booking).where(Booking.id == booking_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_bookings(
        self,
        listing_id: UUID,
        statuses: Iterable[BookingStatus] | None = None,
        include_archived: bool = True,
    ) -> list[Booking]:
        query = select(Booking).where(Booking.listing_id == listing_id)
        if statuses is not None:
            query = query.where(Booking.status.in_(list(statuses)))
        if not include_archived:
            query = query.where(Booking.archived_at.is_(None))
        query = query.order_by(Booking.start_date, Booking.booking_number)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_overlapping(
        self,
        listing_id: UUID,
        start_date: date,
        end_date: date,
        statuses: Iterable[BookingStatus],
    ) -> list[Booking]:
        result = await self.db.execute(
            select(Booking).where(
                Booking.listing_id == listing_id,
                Booking.status.in_(list(statuses)),
                Booking.start_date < end_date,
                Booking.end_date > start_date,
            )
        )
        return list(result.scalars().all())

    async def booking_number_exists(self, booking_number: str) -> bool:
        result = await self.db.execute(
            select(Booking.id).where(Booking.booking_number == booking_number)
        )
        return result.scalar_one_or_none() is not None

    async def add_booking(self, booking: Booking) -> Booking:
        self.db.add(booking)
        await self.db.flush()
        return booking

    async def save_booking(self, booking: Booking) -> Booking:
        await self.db.flush()
        return booking

    async def due_bookings(self, as_of: date) -> list[Booking]:
        result = await self.db.execute(
            select(Booking)
            .where(
                or_(
                    and_(Booking.status == BookingStatus.APPROVED, Booking.start_date <= as_of),
                    and_(Booking.status == BookingStatus.ACTIVE, Booking.end_date <= as_of),
                )
            )
            .order_by(Booking.start_date, Booking.booking_number)
        )
        bookings = list(result.scalars().all())
        # Release the read transaction before per-listing locks are taken
        await self.db.commit()
        return bookings

    async def append_ledger_entry(self, entry: LedgerEntry) -> LedgerEntry:
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def snapshot_period(self, period: ReportingPeriod) -> tuple[list[Booking], Decimal]:
        if not self.db.in_transaction() and self.db.bind.dialect.name == "postgresql":
            await self.db.connection(execution_options={"isolation_level": "REPEATABLE READ"})

        bookings_result = await self.db.execute(
            select(Booking).where(
                Booking.status == BookingStatus.COMPLETED,
                Booking.start_date < period.end,
                Booking.end_date > period.start,
            )
        )
        bookings = list(bookings_result.scalars().all())

        ledger_result = await self.db.execute(
            select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(
                LedgerEntry.entry_type == REVENUE_RECOGNIZED,
                LedgerEntry.service_start < period.end,
                LedgerEntry.service_end > period.start,
            )
        )
        ledger_total = Decimal(str(ledger_result.scalar() or 0))

        await self.db.commit()
        return bookings, ledger_total

    async def replace_revenue_records(
        self, period: ReportingPeriod, records: list[RevenueRecord]
    ) -> list[RevenueRecord]:
        try:
            await self.db.execute(
                delete(RevenueRecord).where(
                    RevenueRecord.period_start == period.start,
                    RevenueRecord.period_end == period.end,
                )
            )
            self.db.add_all(records)
            await self.db.commit()
        except BaseException:
            await self.db.rollback()
            raise
        return records

    async def get_revenue_records(self, period: ReportingPeriod) -> list[RevenueRecord]:
        result = await self.db.execute(
            select(RevenueRecord)
            .where(
                RevenueRecord.period_start == period.start,
                RevenueRecord.period_end == period.end,
            )
            .order_by(RevenueRecord.final_revenue.desc(), RevenueRecord.listing_id)
        )
        return list(result.scalars().all())
