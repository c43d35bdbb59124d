"""
Amount formatting for activity lines and reminder messages.

Shop owners read amounts in the Indian numbering system
(1,00,000 rather than 100,000), so display strings use lakh grouping.
"""

from decimal import Decimal
from typing import Union

Number = Union[Decimal, int, float]


def format_plain_amount(amount: Number) -> str:
    """Render an amount without grouping, dropping a zero fraction (1500, 1500.5)."""
    value = Decimal(str(amount)).quantize(Decimal("0.01"))
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def _group_indian(digits: str) -> str:
    """Group an integer digit string as 12,34,567."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_inr(amount: Number, symbol: str = "₹") -> str:
    """Format an amount for display, e.g. ``₹1,25,000.5``."""
    plain = format_plain_amount(amount)
    sign = ""
    if plain.startswith("-"):
        sign, plain = "-", plain[1:]
    whole, _, fraction = plain.partition(".")
    grouped = _group_indian(whole)
    if fraction:
        grouped = f"{grouped}.{fraction}"
    return f"{symbol}{sign}{grouped}"
