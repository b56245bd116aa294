import uuid
from datetime import date
from decimal import Decimal

import pytest

from adspace.core.exceptions import LedgerMismatch
from adspace.domain.periods import ReportingPeriod
from adspace.domain.pricing import RateCard
from adspace.services.reconciliation_service import ReconciliationService

pytestmark = pytest.mark.anyio

OWNER = uuid.uuid4()
ADVERTISER = uuid.uuid4()
JUNE = ReportingPeriod.for_month(2025, 6)


async def _completed(service, listing_id, start, end):
    booking = await service.create_booking(listing_id, ADVERTISER, start, end)
    await service.approve(booking.id, OWNER)
    await service.activate(booking.id, start)
    return await service.complete(booking.id, end)


@pytest.fixture
def reconciler(repository) -> ReconciliationService:
    return ReconciliationService(repository)


@pytest.fixture
async def second_listing(service):
    return await service.create_listing(OWNER, "Ring Road Gantry", RateCard(base_price=Decimal("500")))


async def test_records_per_listing(service, reconciler, listing, second_listing):
    # Mondays, no weekend multiplier
    a1 = await _completed(service, listing.id, date(2025, 6, 2), date(2025, 6, 12))
    a2 = await _completed(service, listing.id, date(2025, 6, 16), date(2025, 6, 18))
    b1 = await _completed(service, second_listing.id, date(2025, 6, 9), date(2025, 6, 13))

    records = await reconciler.reconcile(JUNE)

    assert [r.listing_id for r in records] == [listing.id, second_listing.id]
    first, second = records
    assert first.booking_count == 2
    assert first.active_days == 12
    assert first.final_revenue == a1.final_amount + a2.final_amount
    assert first.gross_revenue == a1.gross_amount + a2.gross_amount
    assert first.commission == a1.commission_amount + a2.commission_amount
    assert first.net_revenue == a1.net_amount + a2.net_amount
    assert first.tax == a1.tax_amount + a2.tax_amount
    assert second.final_revenue == b1.final_amount
    assert second.active_days == 4

    total = first.final_revenue + second.final_revenue
    assert first.percent_of_total == (first.final_revenue / total * 100).quantize(Decimal("0.01"))
    assert sum(r.final_revenue for r in records) == total


async def test_only_completed_bookings_count(service, reconciler, listing):
    completed = await _completed(service, listing.id, date(2025, 6, 2), date(2025, 6, 5))
    await service.create_booking(listing.id, ADVERTISER, date(2025, 6, 10), date(2025, 6, 12))
    approved = await service.create_booking(listing.id, ADVERTISER, date(2025, 6, 20), date(2025, 6, 22))
    await service.approve(approved.id, OWNER)

    records = await reconciler.reconcile(JUNE)

    assert len(records) == 1
    assert records[0].booking_count == 1
    assert records[0].final_revenue == completed.final_amount


async def test_booking_spanning_month_end_counts_days_inside_period(service, reconciler, listing):
    booking = await _completed(service, listing.id, date(2025, 6, 25), date(2025, 7, 5))

    june = await reconciler.reconcile(JUNE)
    july = await reconciler.reconcile(ReportingPeriod.for_month(2025, 7))

    assert june[0].active_days == 6
    assert july[0].active_days == 4
    assert june[0].final_revenue == booking.final_amount == july[0].final_revenue


async def test_empty_period(reconciler):
    assert await reconciler.reconcile(JUNE) == []


async def test_matching_explicit_ledger_total(service, reconciler, listing):
    booking = await _completed(service, listing.id, date(2025, 6, 2), date(2025, 6, 12))
    records = await reconciler.reconcile(JUNE, ledger_total=booking.final_amount + Decimal("0.01"))
    assert records[0].final_revenue == booking.final_amount


async def test_mismatch_fails_without_rescaling(service, reconciler, repository, listing):
    booking = await _completed(service, listing.id, date(2025, 6, 2), date(2025, 6, 12))
    await reconciler.reconcile(JUNE)
    stored = await reconciler.get_records(JUNE)

    with pytest.raises(LedgerMismatch) as exc_info:
        await reconciler.reconcile(JUNE, ledger_total=Decimal("10000.00"))

    assert exc_info.value.computed_total == booking.final_amount
    assert exc_info.value.ledger_total == Decimal("10000.00")
    assert exc_info.value.tolerance == Decimal("0.01")
    assert exc_info.value.status_code == 409
    # Previously stored figures are untouched and unscaled
    assert await reconciler.get_records(JUNE) == stored
    assert stored[0].final_revenue == booking.final_amount


async def test_mismatch_against_stored_ledger(service, reconciler, repository, listing):
    booking = await _completed(service, listing.id, date(2025, 6, 2), date(2025, 6, 12))
    # Ledger and bookings disagree (e.g. a booking row edited outside the service)
    booking.final_amount = booking.final_amount + Decimal("5")

    with pytest.raises(LedgerMismatch):
        await reconciler.reconcile(JUNE)
    assert await reconciler.get_records(JUNE) == []


async def test_reconcile_is_idempotent(service, reconciler, listing):
    await _completed(service, listing.id, date(2025, 6, 2), date(2025, 6, 12))

    first = await reconciler.reconcile(JUNE)
    second = await reconciler.reconcile(JUNE)

    stored = await reconciler.get_records(JUNE)
    assert len(stored) == 1
    assert [(r.listing_id, r.final_revenue, r.percent_of_total) for r in first] == [
        (r.listing_id, r.final_revenue, r.percent_of_total) for r in second
    ]
