"""Database models."""

from adspace.models.booking import Booking
from adspace.models.financial import LedgerEntry, RevenueRecord
from adspace.models.listing import Listing, ListingDiscountTier, ListingSeasonalRate

__all__ = [
    # Listing
    "Listing",
    "ListingDiscountTier",
    "ListingSeasonalRate",
    # Booking
    "Booking",
    # Financial
    "LedgerEntry",
    "RevenueRecord",
]
