"""
Pricing calculators for orders, combos and promotions.

Everything in this module is a pure function over Decimals: no ORM access,
no side effects. The services feed these functions plain values and persist
the results.

Combo pro-ration
    A combo is sold at a fixed ``combo_price``. The price is split across the
    member lines in proportion to their catalog prices:

        actual_total = sum(base_price * quantity) over the combo's lines
        unit_price   = round(base_price / actual_total * combo_price) + extra_price

    The member lines together bill ``combo_price`` plus their extra prices,
    whatever their quantities. Rounding is per line; the rounded parts may
    differ from ``combo_price`` by a unit per line and that drift is not
    redistributed.

Promotion discounts
    percentage    min(subtotal * pct / 100, max_discount, subtotal)
    fixed amount  min(value, subtotal)
    fixed price   max(0, subtotal - price * quantity)
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Hashable, Iterable, List, Optional, Tuple

from core_backend.utils.money import ZERO, clamp_non_negative, round_currency

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ComboLine:
    """One order line taking part in a combo's pro-ration."""

    key: Hashable
    item_id: int
    base_price: Decimal
    quantity: int
    extra_price: Decimal = ZERO


def combo_actual_total(lines: Iterable[ComboLine]) -> Decimal:
    return sum((line.base_price * line.quantity for line in lines), ZERO)


def pro_rate_unit_price(
    base_price: Decimal,
    actual_total: Decimal,
    combo_price: Decimal,
    extra_price: Decimal = ZERO,
) -> Decimal:
    """
    Pro-rated unit price for one combo member.

    Falls back to the unmodified catalog price when the combo has no priced
    members yet (``actual_total == 0``).
    """
    if actual_total <= 0:
        return base_price
    share = base_price * combo_price / actual_total
    return round_currency(share) + extra_price


def pro_rate_combo(lines: List[ComboLine], combo_price: Decimal) -> Dict[Hashable, Decimal]:
    """Unit price for every line of one combo, keyed by ``ComboLine.key``."""
    actual_total = combo_actual_total(lines)
    return {
        line.key: pro_rate_unit_price(line.base_price, actual_total, combo_price, line.extra_price)
        for line in lines
    }


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    return round_currency(Decimal(quantity) * unit_price)


def order_totals(line_totals: Iterable[Decimal], discount_amount: Decimal) -> Tuple[Decimal, Decimal]:
    """(subtotal, total) for the given non-canceled line totals."""
    subtotal = sum(line_totals, ZERO)
    return subtotal, clamp_non_negative(subtotal - discount_amount)


def percentage_discount(
    subtotal: Decimal, percent: Decimal, max_discount: Optional[Decimal] = None
) -> Decimal:
    discount = subtotal * percent / HUNDRED
    if max_discount is not None:
        discount = min(discount, max_discount)
    return round_currency(min(discount, subtotal))


def fixed_amount_discount(subtotal: Decimal, amount: Decimal) -> Decimal:
    return round_currency(min(amount, subtotal))


def fixed_price_final(unit_price: Decimal, quantity: int) -> Decimal:
    return round_currency(unit_price * quantity)


def fixed_price_discount(subtotal: Decimal, unit_price: Decimal, quantity: int) -> Decimal:
    return clamp_non_negative(subtotal - fixed_price_final(unit_price, quantity))


def gift_count(
    *,
    order_total: Decimal,
    quantities: List[int],
    min_order_value: Optional[Decimal] = None,
    buy_quantity: Optional[int] = None,
    get_quantity: Optional[int] = None,
    require_same_item: bool = False,
) -> int:
    """
    Number of free items a gift promotion grants. Returns 0 when no policy
    is satisfied.

    Policies:
      - min_order_value and buy_quantity: both must hold
      - only min_order_value: ``get_quantity`` gifts (default 1)
      - only buy_quantity: floor(quantity / buy) * get

    ``quantities`` are the applicable quantities; with ``require_same_item``
    they must already be grouped per catalog item and each group is counted
    on its own.
    """
    get = get_quantity or 1

    if buy_quantity:
        if require_same_item:
            count = sum((qty // buy_quantity) * get for qty in quantities)
        else:
            count = (sum(quantities) // buy_quantity) * get
        if min_order_value and order_total < min_order_value:
            return 0
        return count

    if min_order_value:
        return get if order_total >= min_order_value else 0

    return 0
