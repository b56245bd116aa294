from datetime import date, timedelta
from decimal import Decimal

import pytest

from adspace.core.exceptions import (
    BelowMinimumDays,
    InvalidAmount,
    InvalidDateRange,
    ValidationError,
)
from adspace.domain.pricing import DiscountTier, RateCard, SeasonalRate, calculate_rate

WEEKDAY = date(2025, 3, 3)  # Monday
SATURDAY = date(2025, 3, 8)


def test_ten_weekday_days_uses_seven_day_tier(rate_card):
    price = calculate_rate(rate_card, WEEKDAY, WEEKDAY + timedelta(days=10))

    assert price.total_days == 10
    assert price.base_amount == Decimal("10000.00")
    assert price.discount_percent == Decimal("10")
    assert price.discount_amount == Decimal("1000.00")
    assert price.multiplier == Decimal("1")
    assert price.subtotal == Decimal("9000.00")


@pytest.mark.parametrize(
    "days, expected_percent",
    [(6, Decimal("0")), (7, Decimal("10")), (29, Decimal("10")), (30, Decimal("20")), (45, Decimal("20"))],
)
def test_tier_boundaries(rate_card, days, expected_percent):
    price = calculate_rate(rate_card, WEEKDAY, WEEKDAY + timedelta(days=days))
    assert price.discount_percent == expected_percent


def test_weekend_start_applies_weekend_multiplier(rate_card):
    price = calculate_rate(rate_card, SATURDAY, SATURDAY + timedelta(days=2))

    assert price.multiplier == Decimal("1.2")
    assert price.subtotal == Decimal("2400.00")


def test_only_start_date_decides_day_type(rate_card):
    # Friday start spanning the weekend is priced as a weekday booking
    friday = date(2025, 3, 7)
    price = calculate_rate(rate_card, friday, friday + timedelta(days=3))
    assert price.multiplier == Decimal("1")


def test_holiday_takes_precedence_over_weekend():
    card = RateCard(
        base_price=Decimal("500"),
        weekend_multiplier=Decimal("1.2"),
        holiday_multiplier=Decimal("1.5"),
    )
    price = calculate_rate(card, SATURDAY, SATURDAY + timedelta(days=1), holidays=[SATURDAY])

    assert price.multiplier == Decimal("1.5")
    assert price.subtotal == Decimal("750.00")


def test_custom_weekend_days(rate_card):
    # Friday/Saturday weekend
    friday = date(2025, 3, 7)
    price = calculate_rate(rate_card, friday, friday + timedelta(days=1), weekend_days=[4, 5])
    assert price.multiplier == Decimal("1.2")


def test_season_multiplier_stacks_with_day_type():
    diwali = SeasonalRate("festive", Decimal("1.5"), date(2025, 10, 1), date(2025, 11, 1))
    card = RateCard(
        base_price=Decimal("1000"),
        weekend_multiplier=Decimal("1.2"),
        seasonal_rates=[diwali],
    )
    saturday = date(2025, 10, 18)

    price = calculate_rate(card, saturday, saturday + timedelta(days=1))

    assert price.multiplier == Decimal("1.80")
    assert price.subtotal == Decimal("1800.00")


def test_season_end_date_is_exclusive():
    season = SeasonalRate("election", Decimal("2"), date(2025, 4, 1), date(2025, 4, 10))
    card = RateCard(base_price=Decimal("100"), seasonal_rates=[season])

    price = calculate_rate(card, date(2025, 4, 10), date(2025, 4, 11))
    assert price.multiplier == Decimal("1")


def test_quote_is_deterministic(rate_card):
    end = WEEKDAY + timedelta(days=31)
    assert calculate_rate(rate_card, WEEKDAY, end) == calculate_rate(rate_card, WEEKDAY, end)


def test_rounding_is_half_up():
    card = RateCard(base_price=Decimal("333.335"))
    price = calculate_rate(card, WEEKDAY, WEEKDAY + timedelta(days=1))
    assert price.subtotal == Decimal("333.34")


@pytest.mark.parametrize("end_offset", [0, -1])
def test_end_not_after_start_is_rejected(rate_card, end_offset):
    with pytest.raises(InvalidDateRange):
        calculate_rate(rate_card, WEEKDAY, WEEKDAY + timedelta(days=end_offset))


def test_below_minimum_days():
    card = RateCard(base_price=Decimal("100"), minimum_days=7)

    with pytest.raises(BelowMinimumDays) as exc_info:
        calculate_rate(card, WEEKDAY, WEEKDAY + timedelta(days=6))

    assert exc_info.value.minimum_days == 7
    assert exc_info.value.total_days == 6
    assert exc_info.value.status_code == 422


class TestRateCardValidation:
    def test_tiers_are_sorted(self):
        card = RateCard(
            base_price=Decimal("100"),
            discount_tiers=[DiscountTier(30, Decimal("20")), DiscountTier(7, Decimal("10"))],
        )
        assert [t.minimum_days for t in card.discount_tiers] == [7, 30]

    def test_duplicate_tier_rejected(self):
        with pytest.raises(ValidationError):
            RateCard(
                base_price=Decimal("100"),
                discount_tiers=[DiscountTier(7, Decimal("10")), DiscountTier(7, Decimal("15"))],
            )

    def test_decreasing_discount_rejected(self):
        with pytest.raises(ValidationError):
            RateCard(
                base_price=Decimal("100"),
                discount_tiers=[DiscountTier(7, Decimal("20")), DiscountTier(30, Decimal("10"))],
            )

    def test_discount_of_hundred_percent_rejected(self):
        with pytest.raises(ValidationError):
            DiscountTier(7, Decimal("100"))

    def test_multiplier_below_one_rejected(self):
        with pytest.raises(ValidationError):
            RateCard(base_price=Decimal("100"), weekend_multiplier=Decimal("0.9"))

    def test_negative_base_price_rejected(self):
        with pytest.raises(InvalidAmount):
            RateCard(base_price=Decimal("-1"))

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_base_price_rejected(self, value):
        with pytest.raises(InvalidAmount):
            RateCard(base_price=value)

    def test_overlapping_seasons_rejected(self):
        with pytest.raises(ValidationError):
            RateCard(
                base_price=Decimal("100"),
                seasonal_rates=[
                    SeasonalRate("a", Decimal("1.1"), date(2025, 1, 1), date(2025, 1, 15)),
                    SeasonalRate("b", Decimal("1.2"), date(2025, 1, 10), date(2025, 1, 20)),
                ],
            )

    def test_minimum_days_must_be_positive(self):
        with pytest.raises(ValidationError):
            RateCard(base_price=Decimal("100"), minimum_days=0)
