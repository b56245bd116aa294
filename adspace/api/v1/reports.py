"""Revenue reporting endpoints."""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Query

from adspace.api.deps import Reconciliation
from adspace.domain.periods import ReportingPeriod
from adspace.models.financial import RevenueRecord
from adspace.schemas.reporting import (
    ReconcileRequest,
    RevenueRecordResponse,
    RevenueReport,
)

router = APIRouter()


def _report(period: ReportingPeriod, records: list[RevenueRecord]) -> RevenueReport:
    return RevenueReport(
        period_start=period.start,
        period_end=period.end,
        total_final_revenue=sum((r.final_revenue for r in records), Decimal("0")),
        records=[RevenueRecordResponse.model_validate(r) for r in records],
    )


@router.post("/reconcile", response_model=RevenueReport)
async def reconcile_revenue(body: ReconcileRequest, service: Reconciliation) -> RevenueReport:
    """Rebuild the revenue breakdown for a period.

    Returns 409 if the computed total disagrees with the ledger.
    """
    period = body.to_period()
    records = await service.reconcile(period, body.ledger_total)
    return _report(period, records)


@router.get("/revenue", response_model=RevenueReport)
async def get_revenue(
    service: Reconciliation,
    period_start: date = Query(...),
    period_end: date = Query(...),
) -> RevenueReport:
    """Stored revenue breakdown for a period (empty until reconciled)."""
    period = ReportingPeriod(start=period_start, end=period_end)
    return _report(period, await service.get_records(period))
