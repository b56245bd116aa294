from decimal import Decimal

import pytest

from adspace.core.exceptions import InvalidAmount
from adspace.domain.tax import split_amount


def test_split_of_nine_thousand():
    split = split_amount(Decimal("9000"), Decimal("10"), Decimal("18"))

    assert split.commission == Decimal("900.00")
    assert split.net == Decimal("8100.00")
    assert split.tax == Decimal("1458.00")
    assert split.final_amount == Decimal("9558.00")


@pytest.mark.parametrize(
    "subtotal", [Decimal("0"), Decimal("0.01"), Decimal("333.33"), Decimal("1234567.89"), Decimal("99.995")]
)
def test_identities_hold_exactly(subtotal):
    split = split_amount(subtotal, Decimal("12.5"), Decimal("18"))

    assert split.net == split.subtotal - split.commission
    assert split.final_amount == split.net + split.tax
    # Each component is within one currency unit of the unrounded rate
    assert abs(split.commission - split.subtotal * Decimal("0.125")) <= Decimal("0.01")
    assert abs(split.tax - split.net * Decimal("0.18")) <= Decimal("0.01")


def test_zero_rates():
    split = split_amount(Decimal("500"), 0, 0)
    assert split.final_amount == Decimal("500.00")


@pytest.mark.parametrize(
    "subtotal, commission_rate, tax_rate",
    [
        (Decimal("-1"), Decimal("10"), Decimal("18")),
        (Decimal("100"), Decimal("-10"), Decimal("18")),
        (Decimal("100"), Decimal("10"), Decimal("-18")),
        (float("nan"), Decimal("10"), Decimal("18")),
        (float("inf"), Decimal("10"), Decimal("18")),
        (Decimal("100"), Decimal("101"), Decimal("18")),
        ("abc", Decimal("10"), Decimal("18")),
    ],
)
def test_invalid_inputs_rejected(subtotal, commission_rate, tax_rate):
    with pytest.raises(InvalidAmount):
        split_amount(subtotal, commission_rate, tax_rate)
