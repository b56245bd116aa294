"""Listing and rate card Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from adspace.domain.pricing import DiscountTier, RateCard, SeasonalRate


class DiscountTierSchema(BaseModel):
    """Long-term discount tier."""

    model_config = ConfigDict(from_attributes=True)

    minimum_days: int = Field(..., ge=1)
    discount_percent: Decimal = Field(..., ge=0, lt=100)


class SeasonalRateSchema(BaseModel):
    """Seasonal multiplier window [start_date, end_date)."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(..., min_length=1, max_length=50)
    multiplier: Decimal = Field(..., ge=1)
    start_date: date
    end_date: date


class RateCardSchema(BaseModel):
    """Rate card as submitted and returned by the API.

    Commission and tax rates are platform settings and are not accepted here.
    """

    model_config = ConfigDict(from_attributes=True)

    base_price: Decimal = Field(..., ge=0)
    weekend_multiplier: Decimal = Field(default=Decimal("1"), ge=1)
    holiday_multiplier: Decimal = Field(default=Decimal("1"), ge=1)
    minimum_days: int = Field(default=1, ge=1)
    discount_tiers: list[DiscountTierSchema] = Field(default_factory=list)
    seasonal_rates: list[SeasonalRateSchema] = Field(default_factory=list)

    @classmethod
    def from_rate_card(cls, rate_card: RateCard) -> "RateCardSchema":
        return cls(
            base_price=rate_card.base_price,
            weekend_multiplier=rate_card.weekend_multiplier,
            holiday_multiplier=rate_card.holiday_multiplier,
            minimum_days=rate_card.minimum_days,
            discount_tiers=[
                DiscountTierSchema(minimum_days=t.minimum_days, discount_percent=t.discount_percent)
                for t in rate_card.discount_tiers
            ],
            seasonal_rates=[
                SeasonalRateSchema(
                    name=s.name, multiplier=s.multiplier, start_date=s.start_date, end_date=s.end_date
                )
                for s in rate_card.seasonal_rates
            ],
        )

    def to_rate_card(self) -> RateCard:
        """Build the domain rate card; raises ValidationError if inconsistent."""
        return RateCard(
            base_price=self.base_price,
            weekend_multiplier=self.weekend_multiplier,
            holiday_multiplier=self.holiday_multiplier,
            minimum_days=self.minimum_days,
            discount_tiers=[
                DiscountTier(t.minimum_days, t.discount_percent) for t in self.discount_tiers
            ],
            seasonal_rates=[
                SeasonalRate(s.name, s.multiplier, s.start_date, s.end_date)
                for s in self.seasonal_rates
            ],
        )


class ListingCreate(BaseModel):
    """Schema for creating a listing."""

    owner_id: UUID
    title: str = Field(..., min_length=3, max_length=150)
    city: str | None = Field(None, max_length=100)
    rate_card: RateCardSchema


class ListingResponse(BaseModel):
    """Schema for listing response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    title: str
    city: str | None = None
    rate_card: RateCardSchema
    created_at: datetime | None = None


class QuoteRequest(BaseModel):
    """Date range to price; end_date is exclusive."""

    start_date: date
    end_date: date


class QuoteResponse(BaseModel):
    """Full price breakdown of a date range."""

    listing_id: UUID
    start_date: date
    end_date: date
    total_days: int

    # Rate card
    base_amount: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    multiplier: Decimal
    gross_amount: Decimal

    # Commission & GST
    commission_rate: Decimal
    commission_amount: Decimal
    net_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    final_amount: Decimal
    currency: str
