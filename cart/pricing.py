"""Pure cart total computation.

Kept free of ORM access so the same arithmetic backs persisted cart totals,
the empty-cart view and order placement.
"""

from typing import Iterable, NamedTuple, Tuple

from common.money import ZERO, percent_of, quantize


class CartTotals(NamedTuple):
    total_items: int
    subtotal: object
    discount_amount: object
    total_price: object


def line_subtotal(unit_price, quantity: int):
    return quantize(unit_price) * int(quantity)


def recompute_totals(lines: Iterable[Tuple[object, int]], discount: int) -> CartTotals:
    """Compute totals from ``(unit_price, quantity)`` pairs and a percent discount.

    The discounted total is floored at zero.
    """
    total_items = 0
    subtotal = ZERO
    for unit_price, quantity in lines:
        total_items += int(quantity)
        subtotal += line_subtotal(unit_price, quantity)

    subtotal = quantize(subtotal)
    discount_amount = percent_of(subtotal, discount)
    total_price = max(ZERO, subtotal - discount_amount)
    return CartTotals(
        total_items=total_items,
        subtotal=subtotal,
        discount_amount=discount_amount,
        total_price=quantize(total_price),
    )


EMPTY_TOTALS = CartTotals(total_items=0, subtotal=ZERO, discount_amount=ZERO, total_price=ZERO)
