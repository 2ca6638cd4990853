"""
Pricing engine.

Pure functions over cart lines. Totals are recomputed on every call and
never cached on the cart.

Money is integer cents; tax rate is basis points (1500 = 15%). Tax is
rounded half-up to the nearest cent.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class Totals:
    subtotal_cents: int
    tax_cents: int
    total_cents: int

    def to_dict(self) -> dict:
        return {
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
        }


def validate_tax_rate(tax_rate_bps: int) -> int:
    if isinstance(tax_rate_bps, bool) or not isinstance(tax_rate_bps, int):
        raise ValueError("tax_rate_bps must be an integer")
    if not 0 <= tax_rate_bps < BPS_DENOMINATOR:
        raise ValueError("tax_rate_bps must be in [0, 10000)")
    return tax_rate_bps


def validate_point_divisor(point_value_divisor: int) -> int:
    if isinstance(point_value_divisor, bool) or not isinstance(point_value_divisor, int):
        raise ValueError("point_value_divisor must be an integer")
    if point_value_divisor <= 0:
        raise ValueError("point_value_divisor must be positive")
    return point_value_divisor


def subtotal_cents(lines: Iterable) -> int:
    return sum(line.unit_price_cents * line.quantity for line in lines)


def tax_cents(subtotal: int, tax_rate_bps: int) -> int:
    validate_tax_rate(tax_rate_bps)
    return (subtotal * tax_rate_bps + BPS_DENOMINATOR // 2) // BPS_DENOMINATOR


def compute_totals(lines: Iterable, tax_rate_bps: int) -> Totals:
    subtotal = subtotal_cents(lines)
    tax = tax_cents(subtotal, tax_rate_bps)
    return Totals(subtotal_cents=subtotal, tax_cents=tax, total_cents=subtotal + tax)


def change_due(total_cents: int, amount_paid_cents: int | None) -> int | None:
    """Change to return for a cash tender. None when nothing was tendered."""
    if amount_paid_cents is None:
        return None
    if amount_paid_cents < total_cents:
        raise ValueError("amount paid is less than the total")
    return amount_paid_cents - total_cents


def points_for_total(total_cents: int, point_value_divisor: int) -> int:
    """
    Loyalty points earned for a sale total.

    point_value_divisor is in major currency units: 200 means one point
    per 200.00 spent.
    """
    validate_point_divisor(point_value_divisor)
    return max(total_cents, 0) // (point_value_divisor * 100)
