"""Monetary amounts: Decimal, two places, half-up rounding."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce an int, float, str, or Decimal to a two-place Decimal."""
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    """Price of ``quantity`` units; exact for two-place unit prices."""
    return (to_money(unit_price) * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
