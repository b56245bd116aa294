"""Listing endpoints: rate cards, quotes and listing bookings."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from adspace.api.deps import Bookings
from adspace.domain.booking_state import BookingStatus
from adspace.models.listing import Listing
from adspace.schemas.booking import BookingResponse
from adspace.schemas.listing import (
    ListingCreate,
    ListingResponse,
    QuoteRequest,
    QuoteResponse,
    RateCardSchema,
)

router = APIRouter()


def _listing_response(listing: Listing) -> ListingResponse:
    return ListingResponse(
        id=listing.id,
        owner_id=listing.owner_id,
        title=listing.title,
        city=listing.city,
        rate_card=RateCardSchema.from_rate_card(listing.to_rate_card()),
        created_at=listing.created_at,
    )


@router.post("/", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(listing_data: ListingCreate, service: Bookings) -> ListingResponse:
    """Create a listing with its rate card."""
    listing = await service.create_listing(
        owner_id=listing_data.owner_id,
        title=listing_data.title,
        rate_card=listing_data.rate_card.to_rate_card(),
        city=listing_data.city,
    )
    return _listing_response(listing)


@router.get("/{listing_id}/rate-card", response_model=RateCardSchema)
async def get_rate_card(listing_id: UUID, service: Bookings) -> RateCardSchema:
    listing = await service.get_listing(listing_id)
    return RateCardSchema.from_rate_card(listing.to_rate_card())


@router.put("/{listing_id}/rate-card", response_model=RateCardSchema)
async def update_rate_card(
    listing_id: UUID,
    rate_card: RateCardSchema,
    service: Bookings,
) -> RateCardSchema:
    """Replace a listing's rate card (owner only). Existing bookings keep their prices."""
    listing = await service.update_rate_card(listing_id, rate_card.to_rate_card())
    return RateCardSchema.from_rate_card(listing.to_rate_card())


@router.delete("/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_listing(listing_id: UUID, service: Bookings) -> None:
    """Delete a listing. Refused while any of its bookings is not archived."""
    await service.delete_listing(listing_id)


@router.post("/{listing_id}/quote", response_model=QuoteResponse)
async def quote_listing(
    listing_id: UUID,
    quote_request: QuoteRequest,
    service: Bookings,
) -> QuoteResponse:
    """Price a date range without reserving it."""
    quote = await service.quote(listing_id, quote_request.start_date, quote_request.end_date)
    return QuoteResponse(
        listing_id=listing_id,
        start_date=quote.start_date,
        end_date=quote.end_date,
        total_days=quote.total_days,
        base_amount=quote.price.base_amount,
        discount_percent=quote.price.discount_percent,
        discount_amount=quote.price.discount_amount,
        multiplier=quote.price.multiplier,
        gross_amount=quote.price.subtotal,
        commission_rate=quote.split.commission_rate,
        commission_amount=quote.split.commission,
        net_amount=quote.split.net,
        tax_rate=quote.split.tax_rate,
        tax_amount=quote.split.tax,
        final_amount=quote.split.final_amount,
        currency=quote.currency,
    )


@router.get("/{listing_id}/bookings", response_model=list[BookingResponse])
async def list_listing_bookings(
    listing_id: UUID,
    service: Bookings,
    booking_status: list[BookingStatus] | None = Query(None, alias="status"),
    include_archived: bool = Query(True),
) -> list:
    """List a listing's bookings ordered by start date."""
    await service.get_listing(listing_id)
    return await service.list_bookings(listing_id, booking_status, include_archived)
