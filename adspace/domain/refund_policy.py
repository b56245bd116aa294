"""Cancellation refund policy.

A policy is a tier table of (days_before_start lower bound, refund percent).
Tiers are evaluated from the most generous bound downward and the first
bound met wins. Cancelling on or after the start date never refunds, and
below the lowest bound there is no refund either.

Default platform policy:
- 7+ days before start: 100%
- 3-6 days before: 70%
- 1-2 days before: 50%
- on/after start: 0%
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from adspace.core.exceptions import ValidationError
from adspace.domain.periods import days_between
from adspace.utils.money import HUNDRED, percent_of, quantize, to_decimal


@dataclass(frozen=True)
class RefundTier:
    days_before_start: int
    refund_percent: Decimal

    def __post_init__(self) -> None:
        percent = to_decimal(self.refund_percent, "refund_percent")
        if percent > HUNDRED:
            raise ValidationError(f"Refund percent cannot exceed 100, got {percent}")
        object.__setattr__(self, "refund_percent", percent)


@dataclass(frozen=True)
class RefundPolicy:
    """Tier table ordered from the largest bound down."""

    tiers: Sequence[RefundTier]

    def __post_init__(self) -> None:
        tiers = tuple(sorted(self.tiers, key=lambda t: t.days_before_start, reverse=True))
        for higher, lower in zip(tiers, tiers[1:]):
            if higher.days_before_start == lower.days_before_start:
                raise ValidationError(f"Duplicate refund tier for {higher.days_before_start} days")
            if lower.refund_percent > higher.refund_percent:
                raise ValidationError(
                    f"Refund for {lower.days_before_start} days ({lower.refund_percent}%) "
                    f"exceeds refund for {higher.days_before_start} days ({higher.refund_percent}%)"
                )
        object.__setattr__(self, "tiers", tiers)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[int, Decimal | int | str]]) -> "RefundPolicy":
        return cls(tiers=[RefundTier(days, Decimal(str(percent))) for days, percent in pairs])


@dataclass(frozen=True)
class RefundOutcome:
    days_before_start: int
    refund_percent: Decimal
    refund_amount: Decimal


def calculate_refund_percentage(policy: RefundPolicy, days_before_start: int) -> Decimal:
    """Refund percent for a cancellation `days_before_start` days ahead."""
    if days_before_start <= 0:
        return Decimal("0")

    for tier in policy.tiers:
        if days_before_start >= tier.days_before_start:
            return tier.refund_percent

    return Decimal("0")


def calculate_refund(
    policy: RefundPolicy,
    final_amount: Decimal,
    start_date: date,
    cancel_date: date,
) -> RefundOutcome:
    """Refund owed when a booking starting `start_date` is cancelled on `cancel_date`."""
    days_before = days_between(cancel_date, start_date)
    refund_pct = calculate_refund_percentage(policy, days_before)
    return RefundOutcome(
        days_before_start=days_before,
        refund_percent=refund_pct,
        refund_amount=quantize(percent_of(final_amount, refund_pct)),
    )
