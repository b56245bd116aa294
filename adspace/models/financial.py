"""Financial and reporting models.

Ledger entries are append-only. Revenue records are derived by the
reconciliation run and replaced wholesale on every run for a period.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Integer, Numeric, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from adspace.database import Base


class LedgerEntry(Base):
    """Authoritative money record, independent of the bookings table.

    A `revenue_recognized` entry is written when a booking completes and
    carries the booking's service range so period totals can be computed
    from the ledger alone.
    """

    __tablename__ = "ledger_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Entry type
    entry_type: Mapped[str] = mapped_column(
        String(30), nullable=False, index=True
    )  # revenue_recognized

    # Direction: credit (money in) or debit (money out)
    direction: Mapped[str] = mapped_column(String(10), nullable=False, default="credit")

    # Amount (always positive, direction indicates flow)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="INR")

    # References
    listing_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    booking_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    # Service range of the booking this entry recognises
    service_start: Mapped[date] = mapped_column(Date, nullable=False)
    service_end: Mapped[date] = mapped_column(Date, nullable=False)

    description: Mapped[str | None] = mapped_column(Text)

    # Timestamps
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class RevenueRecord(Base):
    """Per-listing revenue for one reporting period."""

    __tablename__ = "revenue_records"
    __table_args__ = (
        UniqueConstraint("listing_id", "period_start", "period_end", name="uq_revenue_listing_period"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    listing_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    # Period boundaries [period_start, period_end)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)

    # Aggregated totals
    gross_revenue: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    commission: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    net_revenue: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    tax: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    final_revenue: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    percent_of_total: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)

    # Counts
    booking_count: Mapped[int] = mapped_column(Integer, nullable=False)
    active_days: Mapped[int] = mapped_column(Integer, nullable=False)

    currency: Mapped[str] = mapped_column(String(3), default="INR")
    reconciled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
