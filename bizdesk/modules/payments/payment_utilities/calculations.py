"""
payment_utilities/calculations.py

Pure helpers for payment previews and order balances.

- remaining amounts are always clamped >= 0
- an order's paid amount is the sum of its recorded transactions
- no API calls here; only compute numbers, formatting belongs in the UI
"""
from __future__ import annotations

from typing import Iterable

from ....utils.helpers import to_amount
from .status import STATUS_PAID, STATUS_PARTIAL, STATUS_PENDING

__all__ = [
    "clamp_non_negative",
    "total_paid",
    "remaining_amount",
    "overpaid_by",
    "order_paid_amount",
    "order_remaining",
    "status_from_paid",
]


# -----------------------------
# Core utilities
# -----------------------------

def clamp_non_negative(x: float) -> float:
    """Return x if x > 0, else 0.0."""
    return x if x > 0.0 else 0.0


def total_paid(payments: Iterable) -> float:
    """Sum of payment amounts; accepts Payment objects or dicts with 'amount'."""
    total = 0.0
    for p in payments or []:
        amt = p.get("amount") if isinstance(p, dict) else getattr(p, "amount", 0.0)
        total += to_amount(amt)
    return total


def remaining_amount(grand_total: float, paid: float) -> float:
    """remaining = grand_total - paid, clamped at >= 0."""
    return clamp_non_negative(to_amount(grand_total) - to_amount(paid))


def overpaid_by(grand_total: float, paid: float) -> float:
    """How much the entered payments exceed the total (0 when they don't)."""
    return clamp_non_negative(to_amount(paid) - to_amount(grand_total))


# -----------------------------
# Existing orders (entity view / sweep)
# -----------------------------

def order_paid_amount(order) -> float:
    """Sum of all transaction amounts recorded against an existing order."""
    return sum(to_amount(a) for a in (order.transaction_amounts or []))


def order_remaining(order) -> float:
    """
    total_amount - paid. NOT clamped: a negative value means the order was
    overpaid, and callers treat anything <= 0 as settled.
    """
    return to_amount(order.total_amount) - order_paid_amount(order)


# -----------------------------
# Common status helper
# -----------------------------

def status_from_paid(total: float, paid: float) -> str:
    """
    Threshold helper for status badges:
      - PAID    if paid >= total
      - PARTIAL if 0 < paid < total
      - PENDING if paid == 0
    """
    if paid >= total:
        return STATUS_PAID
    if paid > 0:
        return STATUS_PARTIAL
    return STATUS_PENDING
