"""Listing and rate card database models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from adspace.database import Base
from adspace.domain.pricing import DiscountTier, RateCard, SeasonalRate


class Listing(Base):
    """Bookable advertising space (billboard, hoarding, screen)."""

    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    # Basic Info
    title: Mapped[str] = mapped_column(String(150), nullable=False)
    city: Mapped[str | None] = mapped_column(String(100), index=True)

    # Rate card (in rupees, 2 decimal places)
    base_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    weekend_multiplier: Mapped[Decimal] = mapped_column(Numeric(6, 3), default=Decimal("1"))
    holiday_multiplier: Mapped[Decimal] = mapped_column(Numeric(6, 3), default=Decimal("1"))
    minimum_days: Mapped[int] = mapped_column(Integer, default=1)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    discount_tiers: Mapped[list["ListingDiscountTier"]] = relationship(
        "ListingDiscountTier",
        back_populates="listing",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ListingDiscountTier.minimum_days",
    )
    seasonal_rates: Mapped[list["ListingSeasonalRate"]] = relationship(
        "ListingSeasonalRate",
        back_populates="listing",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ListingSeasonalRate.start_date",
    )

    def to_rate_card(self) -> RateCard:
        """Build the validated rate card for pricing."""
        return RateCard(
            base_price=self.base_price,
            weekend_multiplier=self.weekend_multiplier if self.weekend_multiplier is not None else Decimal("1"),
            holiday_multiplier=self.holiday_multiplier if self.holiday_multiplier is not None else Decimal("1"),
            minimum_days=self.minimum_days or 1,
            discount_tiers=[
                DiscountTier(tier.minimum_days, tier.discount_percent) for tier in self.discount_tiers
            ],
            seasonal_rates=[
                SeasonalRate(s.name, s.multiplier, s.start_date, s.end_date) for s in self.seasonal_rates
            ],
        )

    def apply_rate_card(self, rate_card: RateCard) -> None:
        """Replace this listing's pricing with an already validated rate card."""
        self.base_price = rate_card.base_price
        self.weekend_multiplier = rate_card.weekend_multiplier
        self.holiday_multiplier = rate_card.holiday_multiplier
        self.minimum_days = rate_card.minimum_days
        self.discount_tiers = [
            ListingDiscountTier(minimum_days=t.minimum_days, discount_percent=t.discount_percent)
            for t in rate_card.discount_tiers
        ]
        self.seasonal_rates = [
            ListingSeasonalRate(
                name=s.name, multiplier=s.multiplier, start_date=s.start_date, end_date=s.end_date
            )
            for s in rate_card.seasonal_rates
        ]


class ListingDiscountTier(Base):
    """Long-term discount tier of a listing's rate card."""

    __tablename__ = "listing_discount_tiers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    minimum_days: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)

    # Relationships
    listing: Mapped["Listing"] = relationship("Listing", back_populates="discount_tiers")


class ListingSeasonalRate(Base):
    """Seasonal multiplier window of a listing's rate card."""

    __tablename__ = "listing_seasonal_rates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)  # festive, election, ...
    multiplier: Mapped[Decimal] = mapped_column(Numeric(6, 3), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Relationships
    listing: Mapped["Listing"] = relationship("Listing", back_populates="seasonal_rates")
