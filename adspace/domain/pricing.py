"""Rate card pricing.

A listing's rate card turns a half-open date range into a gross price:

- base: daily price x number of days
- long-term discount: the tier with the largest minimum_days that the
  booking reaches (none -> no discount)
- day-type multiplier: holiday or weekend, decided by the START DATE only.
  This is a deliberate simplification; days inside the range are not priced
  individually. Holiday wins over weekend, they never compound.
- seasonal multiplier: applied when the start date falls in a season window
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from adspace.core.exceptions import BelowMinimumDays, InvalidDateRange, ValidationError
from adspace.domain.periods import days_between
from adspace.utils.money import HUNDRED, quantize, to_decimal

ONE = Decimal("1")

# Monday=0 ... Sunday=6
DEFAULT_WEEKEND_DAYS: frozenset[int] = frozenset({5, 6})


@dataclass(frozen=True)
class DiscountTier:
    """Long-term discount: `discount_percent` off once `minimum_days` is reached."""

    minimum_days: int
    discount_percent: Decimal

    def __post_init__(self) -> None:
        percent = to_decimal(self.discount_percent, "discount_percent")
        if self.minimum_days < 1:
            raise ValidationError(f"Discount tier minimum_days must be >= 1, got {self.minimum_days}")
        if percent >= HUNDRED:
            raise ValidationError(f"Discount percent must be below 100, got {percent}")
        object.__setattr__(self, "discount_percent", percent)


@dataclass(frozen=True)
class SeasonalRate:
    """Multiplier for bookings starting inside [start_date, end_date)."""

    name: str
    multiplier: Decimal
    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        multiplier = to_decimal(self.multiplier, f"{self.name} multiplier")
        if multiplier < ONE:
            raise ValidationError(f"Seasonal multiplier must be >= 1.0, got {multiplier}")
        if self.end_date <= self.start_date:
            raise InvalidDateRange(f"Season '{self.name}' must end after it starts")
        object.__setattr__(self, "multiplier", multiplier)

    def contains(self, day: date) -> bool:
        return self.start_date <= day < self.end_date


@dataclass(frozen=True)
class RateCard:
    """Pricing rules owned by a listing."""

    base_price: Decimal
    weekend_multiplier: Decimal = ONE
    holiday_multiplier: Decimal = ONE
    discount_tiers: Sequence[DiscountTier] = ()
    minimum_days: int = 1
    seasonal_rates: Sequence[SeasonalRate] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_price", to_decimal(self.base_price, "base_price"))

        for name in ("weekend_multiplier", "holiday_multiplier"):
            multiplier = to_decimal(getattr(self, name), name)
            if multiplier < ONE:
                raise ValidationError(f"{name} must be >= 1.0, got {multiplier}")
            object.__setattr__(self, name, multiplier)

        if self.minimum_days < 1:
            raise ValidationError(f"minimum_days must be >= 1, got {self.minimum_days}")

        tiers = tuple(sorted(self.discount_tiers, key=lambda t: t.minimum_days))
        for lower, upper in zip(tiers, tiers[1:]):
            if lower.minimum_days == upper.minimum_days:
                raise ValidationError(f"Duplicate discount tier for {lower.minimum_days} days")
            if upper.discount_percent < lower.discount_percent:
                raise ValidationError(
                    f"Discount for {upper.minimum_days} days ({upper.discount_percent}%) "
                    f"is smaller than for {lower.minimum_days} days ({lower.discount_percent}%)"
                )
        object.__setattr__(self, "discount_tiers", tiers)

        seasons = tuple(sorted(self.seasonal_rates, key=lambda s: s.start_date))
        for earlier, later in zip(seasons, seasons[1:]):
            if later.start_date < earlier.end_date:
                raise ValidationError(f"Seasons '{earlier.name}' and '{later.name}' overlap")
        object.__setattr__(self, "seasonal_rates", seasons)

    def discount_tier_for(self, total_days: int) -> DiscountTier | None:
        """Tier with the largest minimum_days not above `total_days`."""
        applicable = None
        for tier in self.discount_tiers:
            if tier.minimum_days <= total_days:
                applicable = tier
        return applicable

    def season_for(self, day: date) -> SeasonalRate | None:
        for season in self.seasonal_rates:
            if season.contains(day):
                return season
        return None


@dataclass(frozen=True)
class PriceBreakdown:
    """Gross price of a date range, before commission and tax."""

    total_days: int
    base_amount: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    multiplier: Decimal
    subtotal: Decimal


def day_type_multiplier(
    rate_card: RateCard,
    start_date: date,
    weekend_days: Iterable[int] = DEFAULT_WEEKEND_DAYS,
    holidays: Iterable[date] = (),
) -> Decimal:
    """Holiday or weekend multiplier for a booking starting on `start_date`."""
    if start_date in set(holidays):
        return rate_card.holiday_multiplier
    if start_date.weekday() in set(weekend_days):
        return rate_card.weekend_multiplier
    return ONE


def calculate_rate(
    rate_card: RateCard,
    start_date: date,
    end_date: date,
    weekend_days: Iterable[int] = DEFAULT_WEEKEND_DAYS,
    holidays: Iterable[date] = (),
) -> PriceBreakdown:
    """Price [start_date, end_date) against a rate card.

    Raises:
        InvalidDateRange: end_date is not after start_date
        BelowMinimumDays: range is shorter than rate_card.minimum_days
    """
    if end_date <= start_date:
        raise InvalidDateRange()

    total_days = days_between(start_date, end_date)
    if total_days < rate_card.minimum_days:
        raise BelowMinimumDays(total_days, rate_card.minimum_days)

    base_amount = rate_card.base_price * total_days

    tier = rate_card.discount_tier_for(total_days)
    discount_percent = tier.discount_percent if tier else Decimal("0")
    discounted = base_amount * (ONE - discount_percent / HUNDRED)

    multiplier = day_type_multiplier(rate_card, start_date, weekend_days, holidays)
    season = rate_card.season_for(start_date)
    if season:
        multiplier *= season.multiplier

    return PriceBreakdown(
        total_days=total_days,
        base_amount=quantize(base_amount),
        discount_percent=discount_percent,
        discount_amount=quantize(base_amount - discounted),
        multiplier=multiplier,
        subtotal=quantize(discounted * multiplier),
    )
