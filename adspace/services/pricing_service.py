"""Booking quote service.

CRITICAL BUSINESS LOGIC:
- The platform takes a flat commission (default 10%) on the rate card subtotal
- GST (default 18%) is charged on the owner's net share, not on the subtotal
- Both rates are platform constants from configuration, never request input
- Weekend/holiday pricing is decided by the booking's start date only
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from adspace.config import settings
from adspace.domain.pricing import PriceBreakdown, RateCard, calculate_rate
from adspace.domain.tax import TaxSplit, split_amount


@dataclass(frozen=True)
class Quote:
    """Everything an advertiser pays for a date range, and how it splits."""

    start_date: date
    end_date: date
    price: PriceBreakdown
    split: TaxSplit
    currency: str

    @property
    def total_days(self) -> int:
        return self.price.total_days

    @property
    def final_amount(self) -> Decimal:
        return self.split.final_amount


class PricingService:
    """Composes the rate calculator and the commission/tax split."""

    def __init__(
        self,
        commission_rate: Decimal | None = None,
        tax_rate: Decimal | None = None,
        weekend_days: Iterable[int] | None = None,
        holidays: Iterable[date] | None = None,
        currency: str | None = None,
    ) -> None:
        self.commission_rate = (
            commission_rate if commission_rate is not None else settings.platform_commission_percent
        )
        self.tax_rate = tax_rate if tax_rate is not None else settings.platform_tax_percent
        self.weekend_days = frozenset(weekend_days if weekend_days is not None else settings.weekend_days)
        self.holidays = frozenset(holidays if holidays is not None else settings.holidays)
        self.currency = currency or settings.currency

    def quote(self, rate_card: RateCard, start_date: date, end_date: date) -> Quote:
        """Price a date range against a rate card.

        Raises:
            InvalidDateRange: end_date is not after start_date
            BelowMinimumDays: range is shorter than the rate card minimum
            InvalidAmount: a computed amount or configured rate is invalid
        """
        price = calculate_rate(
            rate_card,
            start_date,
            end_date,
            weekend_days=self.weekend_days,
            holidays=self.holidays,
        )
        split = split_amount(price.subtotal, self.commission_rate, self.tax_rate)
        return Quote(
            start_date=start_date,
            end_date=end_date,
            price=price,
            split=split,
            currency=self.currency,
        )
