"""Commission and GST split of a booking subtotal.

- commission = subtotal x commission_rate%
- net = subtotal - commission (owner's share)
- tax = net x tax_rate%
- final = net + tax (what the advertiser pays)

Commission and tax are rounded to the currency unit; net and final are
exact differences/sums of rounded values so the identities always hold.
"""

from dataclasses import dataclass
from decimal import Decimal

from adspace.core.exceptions import InvalidAmount
from adspace.utils.money import HUNDRED, percent_of, quantize, to_decimal


@dataclass(frozen=True)
class TaxSplit:
    subtotal: Decimal
    commission_rate: Decimal
    tax_rate: Decimal
    commission: Decimal
    net: Decimal
    tax: Decimal
    final_amount: Decimal


def split_amount(
    subtotal: Decimal | int | str,
    commission_rate: Decimal | int | str,
    tax_rate: Decimal | int | str,
) -> TaxSplit:
    """Split a subtotal into commission, net, tax and final amount.

    Raises:
        InvalidAmount: any input is negative or non-finite
    """
    subtotal = quantize(to_decimal(subtotal, "subtotal"))
    commission_rate = to_decimal(commission_rate, "commission_rate")
    tax_rate = to_decimal(tax_rate, "tax_rate")
    if commission_rate > HUNDRED:
        raise InvalidAmount(f"commission_rate cannot exceed 100, got {commission_rate}")

    commission = quantize(percent_of(subtotal, commission_rate))
    net = subtotal - commission
    tax = quantize(percent_of(net, tax_rate))

    return TaxSplit(
        subtotal=subtotal,
        commission_rate=commission_rate,
        tax_rate=tax_rate,
        commission=commission,
        net=net,
        tax=tax,
        final_amount=net + tax,
    )
