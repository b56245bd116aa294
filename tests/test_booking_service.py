import asyncio
import random
import uuid
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from adspace.core.exceptions import (
    BelowMinimumDays,
    DateRangeConflict,
    InvalidDateRange,
    InvalidTransition,
    ListingHasBookings,
    NotFoundError,
)
from adspace.domain.booking_state import OPEN_STATUSES, BookingStatus
from adspace.domain.periods import local_today, ranges_overlap
from adspace.domain.pricing import RateCard
from adspace.repositories.base import REVENUE_RECOGNIZED
from adspace.services import booking_service

pytestmark = pytest.mark.anyio

START = date(2025, 6, 2)  # Monday
END = START + timedelta(days=10)
OWNER = uuid.uuid4()
ADVERTISER = uuid.uuid4()


async def _approved(service, listing, start=START, end=END):
    booking = await service.create_booking(listing.id, ADVERTISER, start, end)
    return await service.approve(booking.id, OWNER)


async def test_create_booking_prices_and_stores_pending(service, listing):
    booking = await service.create_booking(listing.id, ADVERTISER, START, END)

    assert booking.status == BookingStatus.PENDING
    assert booking.booking_number.startswith("ADS-")
    assert booking.total_days == 10
    assert booking.base_amount == Decimal("10000.00")
    assert booking.gross_amount == Decimal("9000.00")
    assert booking.commission_amount == Decimal("900.00")
    assert booking.net_amount == Decimal("8100.00")
    assert booking.tax_amount == Decimal("1458.00")
    assert booking.final_amount == Decimal("9558.00")
    assert booking.payment_status == "pending"
    assert await service.get_booking(booking.id) is booking


async def test_create_booking_unknown_listing(service):
    with pytest.raises(NotFoundError):
        await service.create_booking(uuid.uuid4(), ADVERTISER, START, END)


async def test_invalid_range_persists_nothing(service, listing):
    with pytest.raises(InvalidDateRange):
        await service.create_booking(listing.id, ADVERTISER, END, START)
    assert await service.list_bookings(listing.id) == []


async def test_below_minimum_days(service, listing):
    await service.update_rate_card(
        listing.id, RateCard(base_price=Decimal("1000"), minimum_days=7)
    )
    with pytest.raises(BelowMinimumDays):
        await service.create_booking(listing.id, ADVERTISER, START, START + timedelta(days=3))


async def test_overlapping_request_conflicts(service, listing):
    await service.create_booking(listing.id, ADVERTISER, START, END)

    with pytest.raises(DateRangeConflict):
        await service.create_booking(listing.id, uuid.uuid4(), END - timedelta(days=1), END + timedelta(days=5))


async def test_adjacent_ranges_do_not_conflict(service, listing):
    await service.create_booking(listing.id, ADVERTISER, START, END)
    following = await service.create_booking(listing.id, uuid.uuid4(), END, END + timedelta(days=3))
    assert following.status == BookingStatus.PENDING


async def test_rejected_and_cancelled_bookings_release_dates(service, listing):
    rejected = await service.create_booking(listing.id, ADVERTISER, START, END)
    await service.reject(rejected.id, OWNER, "creative not approved")

    cancelled = await service.create_booking(listing.id, ADVERTISER, START, END)
    await service.cancel(cancelled.id, ADVERTISER, START - timedelta(days=20))

    again = await service.create_booking(listing.id, ADVERTISER, START, END)
    assert again.status == BookingStatus.PENDING


async def test_same_dates_on_other_listing_allowed(service, listing, rate_card):
    other = await service.create_listing(OWNER, "Airport Road Unipole", rate_card)
    await service.create_booking(listing.id, ADVERTISER, START, END)
    booking = await service.create_booking(other.id, ADVERTISER, START, END)
    assert booking.listing_id == other.id


async def test_concurrent_identical_requests_exactly_one_wins(service, listing):
    results = await asyncio.gather(
        *(service.create_booking(listing.id, uuid.uuid4(), START, END) for _ in range(10)),
        return_exceptions=True,
    )

    created = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, DateRangeConflict)]
    assert len(created) == 1
    assert len(conflicts) == 9


async def test_randomized_concurrent_requests_never_overlap(service, listing):
    rng = random.Random(20250601)
    requests = []
    for _ in range(60):
        start = START + timedelta(days=rng.randint(0, 60))
        requests.append((start, start + timedelta(days=rng.randint(1, 12))))

    await asyncio.gather(
        *(service.create_booking(listing.id, uuid.uuid4(), s, e) for s, e in requests),
        return_exceptions=True,
    )

    held = await service.list_bookings(listing.id, OPEN_STATUSES)
    assert held
    for i, a in enumerate(held):
        for b in held[i + 1:]:
            assert not ranges_overlap(a.start_date, a.end_date, b.start_date, b.end_date)


async def test_full_lifecycle_appends_ledger_entry(service, listing, repository):
    booking = await _approved(service, listing)
    assert booking.approved_by == OWNER

    await service.activate(booking.id, START)
    completed = await service.complete(booking.id, END)

    assert completed.status == BookingStatus.COMPLETED
    assert completed.completed_at is not None
    entries = [e for e in repository._ledger if e.booking_id == booking.id]
    assert len(entries) == 1
    assert entries[0].entry_type == REVENUE_RECOGNIZED
    assert entries[0].amount == completed.final_amount
    assert (entries[0].service_start, entries[0].service_end) == (START, END)


async def test_activate_before_start_is_refused(service, listing):
    booking = await _approved(service, listing)
    with pytest.raises(InvalidTransition):
        await service.activate(booking.id, START - timedelta(days=1))
    assert (await service.get_booking(booking.id)).status == BookingStatus.APPROVED


async def test_complete_before_end_is_refused(service, listing, repository):
    booking = await _approved(service, listing)
    await service.activate(booking.id, START)

    with pytest.raises(InvalidTransition):
        await service.complete(booking.id, END - timedelta(days=1))
    assert repository._ledger == []


async def test_pending_booking_cannot_be_activated(service, listing):
    booking = await service.create_booking(listing.id, ADVERTISER, START, END)
    with pytest.raises(InvalidTransition):
        await service.activate(booking.id, START)


async def test_approve_twice_is_refused(service, listing):
    booking = await _approved(service, listing)
    with pytest.raises(InvalidTransition):
        await service.approve(booking.id, OWNER)


async def test_cancel_two_days_before_refunds_half(service, listing):
    booking = await _approved(service, listing)

    cancelled = await service.cancel(booking.id, ADVERTISER, START - timedelta(days=2), "campaign moved")

    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.refund_percent == Decimal("50")
    assert cancelled.refund_amount == Decimal("4779.00")
    assert cancelled.cancelled_by == ADVERTISER
    assert cancelled.cancellation_reason == "campaign moved"


async def test_cancel_without_date_uses_platform_calendar_day(service, listing, monkeypatch):
    # 02:00 on 2 June in Asia/Kolkata is still 1 June in UTC
    just_after_midnight = datetime(2025, 6, 1, 20, 30, tzinfo=UTC)
    monkeypatch.setattr(
        booking_service,
        "platform_today",
        lambda: local_today("Asia/Kolkata", just_after_midnight),
    )
    start = date(2025, 6, 4)
    booking = await service.create_booking(listing.id, ADVERTISER, start, start + timedelta(days=10))

    cancelled = await service.cancel(booking.id, ADVERTISER)

    assert cancelled.cancel_date == date(2025, 6, 2)
    assert cancelled.refund_percent == Decimal("50")


async def test_cancel_completed_booking_is_refused(service, listing):
    booking = await _approved(service, listing)
    await service.activate(booking.id, START)
    await service.complete(booking.id, END)

    with pytest.raises(InvalidTransition):
        await service.cancel(booking.id, ADVERTISER, END)


async def test_failed_payment_rejects_pending_booking(service, listing):
    booking = await service.create_booking(listing.id, ADVERTISER, START, END)

    result = await service.record_payment(booking.id, succeeded=False)

    assert result.status == BookingStatus.REJECTED
    assert result.rejection_reason == "payment_failed"
    assert result.payment_status == "failed"


async def test_failed_payment_is_written_once(service, listing, repository, monkeypatch):
    booking = await service.create_booking(listing.id, ADVERTISER, START, END)
    saves = []
    original_save = repository.save_booking

    async def save_once(b):
        if saves:
            raise RuntimeError("second write")
        saves.append(b.id)
        return await original_save(b)

    monkeypatch.setattr(repository, "save_booking", save_once)

    result = await service.record_payment(booking.id, succeeded=False)

    assert saves == [booking.id]
    assert result.status == BookingStatus.REJECTED
    assert result.payment_status == "failed"


async def test_successful_payment_marks_paid(service, listing):
    booking = await _approved(service, listing)
    result = await service.record_payment(booking.id, succeeded=True)
    assert result.payment_status == "paid"
    assert result.status == BookingStatus.APPROVED


async def test_archive_only_terminal_bookings(service, listing):
    booking = await service.create_booking(listing.id, ADVERTISER, START, END)
    with pytest.raises(InvalidTransition):
        await service.archive(booking.id)

    await service.reject(booking.id, OWNER)
    archived = await service.archive(booking.id)
    assert archived.is_archived


async def test_delete_listing_guarded_until_bookings_archived(service, listing):
    booking = await service.create_booking(listing.id, ADVERTISER, START, END)

    with pytest.raises(ListingHasBookings):
        await service.delete_listing(listing.id)

    await service.cancel(booking.id, ADVERTISER, START - timedelta(days=30))
    await service.archive(booking.id)
    await service.delete_listing(listing.id)

    with pytest.raises(NotFoundError):
        await service.get_listing(listing.id)
    # Bookings outlive their listing
    assert (await service.get_booking(booking.id)).is_archived


async def test_delete_listing_releases_its_lock(service, listing, repository):
    await service.delete_listing(listing.id)

    assert listing.id not in repository._locks
    assert listing.id not in repository._bookings_by_listing


async def test_unknown_listing_leaves_no_lock(service, repository):
    with pytest.raises(NotFoundError):
        await service.create_booking(uuid.uuid4(), ADVERTISER, START, END)
    with pytest.raises(NotFoundError):
        await service.delete_listing(uuid.uuid4())

    assert repository._locks == {}


async def test_rate_card_change_keeps_existing_prices(service, listing):
    booking = await service.create_booking(listing.id, ADVERTISER, START, END)
    await service.update_rate_card(listing.id, RateCard(base_price=Decimal("5000")))

    assert (await service.get_booking(booking.id)).final_amount == Decimal("9558.00")


async def test_advance_due_bookings(service, listing):
    started = await _approved(service, listing, START, START + timedelta(days=30))
    finished = await _approved(service, listing, date(2025, 5, 1), date(2025, 5, 11))
    future = await _approved(service, listing, date(2025, 9, 1), date(2025, 9, 11))

    result = await service.advance_due_bookings(START + timedelta(days=1))

    assert result.activated == 2
    assert result.completed == 1
    assert (await service.get_booking(started.id)).status == BookingStatus.ACTIVE
    assert (await service.get_booking(finished.id)).status == BookingStatus.COMPLETED
    assert (await service.get_booking(future.id)).status == BookingStatus.APPROVED


async def test_list_bookings_filters(service, listing):
    first = await service.create_booking(listing.id, ADVERTISER, START, END)
    second = await service.create_booking(listing.id, ADVERTISER, END, END + timedelta(days=2))
    await service.reject(first.id, OWNER)
    await service.archive(first.id)

    assert [b.id for b in await service.list_bookings(listing.id)] == [first.id, second.id]
    assert [b.id for b in await service.list_bookings(listing.id, include_archived=False)] == [second.id]
    assert [b.id for b in await service.list_bookings(listing.id, [BookingStatus.REJECTED])] == [first.id]
