from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple


CENT = Decimal("0.01")
DEFAULT_PLATFORM_FEE_RATE = Decimal("0.10")


class FinancialSplit(NamedTuple):
    total_value: Decimal
    platform_fee: Decimal
    net_value: Decimal


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def split_order_value(quantity: int, price_per_unit: Decimal, fee_rate: Decimal = DEFAULT_PLATFORM_FEE_RATE) -> FinancialSplit:
    """Split the gross order value into platform fee and supplier net.

    The fee is rounded to cents and the net is derived by subtraction, so
    ``total_value == platform_fee + net_value`` holds exactly.
    """
    total_value = to_money(Decimal(quantity) * Decimal(str(price_per_unit)))
    platform_fee = to_money(total_value * Decimal(str(fee_rate)))
    return FinancialSplit(total_value, platform_fee, total_value - platform_fee)


def supplier_unit_price(net_value: Decimal, quantity: int) -> Decimal:
    if quantity <= 0:
        return Decimal("0.00")
    return to_money(Decimal(net_value) / Decimal(quantity))
