"""Celery background tasks."""

import asyncio
import logging
from datetime import date

from celery import shared_task

from adspace.core.exceptions import LedgerMismatch
from adspace.core.immutability import register_immutability_enforcement
from adspace.database import get_db_context
from adspace.domain.periods import ReportingPeriod
from adspace.repositories.sql import SqlBookingRepository
from adspace.services.booking_service import BookingService, platform_today
from adspace.services.reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)


_loop: asyncio.AbstractEventLoop | None = None


def run_async(coro):
    """Run async function in sync context.

    One loop per worker process, so pooled database connections stay usable
    across tasks.
    """
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)


# ==================== BOOKING LIFECYCLE ====================


@shared_task(bind=True, max_retries=3)
def advance_booking_lifecycles(self, as_of: str | None = None):
    """Activate approved bookings that started and complete active ones that ended.

    Runs every `lifecycle_sweep_minutes` (default 15).
    """
    today = date.fromisoformat(as_of) if as_of else platform_today()
    try:
        result = run_async(_advance_booking_lifecycles(today))
    except Exception as exc:
        logger.exception(f"Lifecycle sweep for {today} failed")
        raise self.retry(exc=exc, countdown=60)
    return {"status": "success", "as_of": today.isoformat(), **result}


async def _advance_booking_lifecycles(today: date) -> dict:
    register_immutability_enforcement()
    async with get_db_context() as db:
        service = BookingService(SqlBookingRepository(db))
        result = await service.advance_due_bookings(today)
    return {"activated": result.activated, "completed": result.completed}


# ==================== RECONCILIATION ====================


@shared_task(bind=True, max_retries=3)
def reconcile_previous_month(self, today: str | None = None):
    """Rebuild revenue records for the month before `today`.

    Runs on the 1st of each month. A ledger mismatch is not retried: the
    figures will not change until someone investigates.
    """
    period = ReportingPeriod.previous_month(date.fromisoformat(today) if today else platform_today())
    try:
        count = run_async(_reconcile(period))
    except LedgerMismatch as e:
        logger.error(f"Reconciliation for {period.start}..{period.end} failed: {e}")
        return {
            "status": "mismatch",
            "period_start": period.start.isoformat(),
            "computed_total": str(e.computed_total),
            "ledger_total": str(e.ledger_total),
        }
    except Exception as exc:
        logger.exception(f"Reconciliation for {period.start}..{period.end} errored")
        raise self.retry(exc=exc, countdown=300)

    return {"status": "success", "period_start": period.start.isoformat(), "records": count}


async def _reconcile(period: ReportingPeriod) -> int:
    register_immutability_enforcement()
    async with get_db_context() as db:
        service = ReconciliationService(SqlBookingRepository(db))
        records = await service.reconcile(period)
    return len(records)
