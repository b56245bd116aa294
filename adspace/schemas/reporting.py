"""Revenue reporting schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from adspace.domain.periods import ReportingPeriod


class ReconcileRequest(BaseModel):
    """Reporting period as explicit bounds [period_start, period_end) or a calendar month."""

    period_start: date | None = None
    period_end: date | None = None
    year: int | None = Field(None, ge=2000, le=2100)
    month: int | None = Field(None, ge=1, le=12)
    ledger_total: Decimal | None = Field(
        None, ge=0, description="Authoritative total; read from the ledger when omitted"
    )

    @model_validator(mode="after")
    def check_period(self) -> "ReconcileRequest":
        has_bounds = self.period_start is not None and self.period_end is not None
        has_month = self.year is not None and self.month is not None
        if has_bounds == has_month:
            raise ValueError("Provide either period_start and period_end, or year and month")
        return self

    def to_period(self) -> ReportingPeriod:
        if self.year is not None and self.month is not None:
            return ReportingPeriod.for_month(self.year, self.month)
        return ReportingPeriod(start=self.period_start, end=self.period_end)


class RevenueRecordResponse(BaseModel):
    """Per-listing revenue for a reporting period."""

    model_config = ConfigDict(from_attributes=True)

    listing_id: UUID
    period_start: date
    period_end: date
    gross_revenue: Decimal
    commission: Decimal
    net_revenue: Decimal
    tax: Decimal
    final_revenue: Decimal
    percent_of_total: Decimal
    booking_count: int
    active_days: int
    currency: str
    reconciled_at: datetime | None = None


class RevenueReport(BaseModel):
    """Reconciled revenue breakdown for a period."""

    period_start: date
    period_end: date
    total_final_revenue: Decimal
    records: list[RevenueRecordResponse]
