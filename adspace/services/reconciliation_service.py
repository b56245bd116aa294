"""Revenue reconciliation service.

Aggregates completed bookings into per-listing revenue records for a
reporting period and checks the total against the ledger. A disagreement
beyond one currency unit per record is fatal: figures are never rescaled
to force agreement.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from adspace.config import settings
from adspace.core.exceptions import LedgerMismatch
from adspace.domain.periods import ReportingPeriod
from adspace.models.booking import Booking
from adspace.models.financial import RevenueRecord
from adspace.repositories.base import BookingRepository
from adspace.utils.money import HUNDRED, quantize

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class _ListingTotals:
    gross: Decimal = ZERO
    commission: Decimal = ZERO
    net: Decimal = ZERO
    tax: Decimal = ZERO
    final: Decimal = ZERO
    booking_count: int = 0
    active_days: int = 0
    currency: str = field(default_factory=lambda: settings.currency)

    def add(self, booking: Booking, days_in_period: int) -> None:
        self.gross += booking.gross_amount
        self.commission += booking.commission_amount
        self.net += booking.net_amount
        self.tax += booking.tax_amount
        self.final += booking.final_amount
        self.booking_count += 1
        self.active_days += days_in_period
        self.currency = booking.currency or self.currency


class ReconciliationService:
    """Builds and verifies revenue records from completed bookings."""

    def __init__(self, repository: BookingRepository, currency_unit: Decimal | None = None) -> None:
        self.repository = repository
        self.currency_unit = (
            currency_unit if currency_unit is not None else settings.reconciliation_currency_unit
        )

    def aggregate(self, period: ReportingPeriod, bookings: list[Booking]) -> list[RevenueRecord]:
        """Per-listing totals for a period, largest final revenue first.

        A booking counts in full toward every period its range touches;
        `active_days` only counts the days inside the period.
        """
        totals: defaultdict[UUID, _ListingTotals] = defaultdict(_ListingTotals)
        for booking in bookings:
            totals[booking.listing_id].add(
                booking, period.days_within(booking.start_date, booking.end_date)
            )

        grand_total = sum((t.final for t in totals.values()), ZERO)
        reconciled_at = datetime.now(UTC)

        records = [
            RevenueRecord(
                id=uuid4(),
                listing_id=listing_id,
                period_start=period.start,
                period_end=period.end,
                gross_revenue=quantize(t.gross),
                commission=quantize(t.commission),
                net_revenue=quantize(t.net),
                tax=quantize(t.tax),
                final_revenue=quantize(t.final),
                percent_of_total=quantize(t.final / grand_total * HUNDRED) if grand_total else ZERO,
                booking_count=t.booking_count,
                active_days=t.active_days,
                currency=t.currency,
                reconciled_at=reconciled_at,
            )
            for listing_id, t in totals.items()
        ]
        records.sort(key=lambda r: (-r.final_revenue, str(r.listing_id)))
        return records

    async def reconcile(
        self, period: ReportingPeriod, ledger_total: Decimal | None = None
    ) -> list[RevenueRecord]:
        """Recompute and store the revenue records for a period.

        Args:
            period: Reporting window [start, end)
            ledger_total: Authoritative total; read from the ledger when omitted

        Raises:
            LedgerMismatch: records disagree with the ledger beyond tolerance.
                Nothing is stored in that case.
        """
        bookings, stored_ledger_total = await self.repository.snapshot_period(period)
        if ledger_total is None:
            ledger_total = stored_ledger_total

        records = self.aggregate(period, bookings)
        computed_total = sum((r.final_revenue for r in records), ZERO)
        tolerance = self.currency_unit * len(records)

        if abs(computed_total - ledger_total) > tolerance:
            logger.error(
                f"Ledger mismatch for {period.start}..{period.end}: "
                f"computed={computed_total}, ledger={ledger_total}, tolerance={tolerance}, "
                f"bookings={len(bookings)}"
            )
            raise LedgerMismatch(computed_total, ledger_total, tolerance)

        await self.repository.replace_revenue_records(period, records)

        logger.info(
            f"Reconciled {period.start}..{period.end}: {len(records)} listing(s), "
            f"{len(bookings)} booking(s), total={computed_total}"
        )
        return records

    async def get_records(self, period: ReportingPeriod) -> list[RevenueRecord]:
        """Stored revenue records for a period (empty until reconciled)."""
        return await self.repository.get_revenue_records(period)
