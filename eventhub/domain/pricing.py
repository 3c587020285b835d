# eventhub/domain/pricing.py

from dataclasses import dataclass


@dataclass(frozen=True)
class CartTotals:
    subtotal: int
    service_fee: int
    total: int


def service_fee(subtotal: int, fee_percent: int) -> int:
    """
    Fee in minor currency units, rounded half-up.

    Integer arithmetic only: 10% of 10050 is 1005, 10% of 10055 is 1006.
    """
    if subtotal < 0:
        raise ValueError("subtotal must be non-negative")
    if fee_percent < 0:
        raise ValueError("fee_percent must be non-negative")
    return (subtotal * fee_percent + 50) // 100


def calculate_cart_totals(
    lines: list[tuple[int, int]],
    fee_percent: int,
) -> CartTotals:
    """
    Compute totals for (unit_price, quantity) pairs.
    """
    subtotal = sum(unit_price * quantity for unit_price, quantity in lines)
    fee = service_fee(subtotal, fee_percent)
    return CartTotals(subtotal=subtotal, service_fee=fee, total=subtotal + fee)
