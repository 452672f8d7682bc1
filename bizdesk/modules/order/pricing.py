# bizdesk/modules/order/pricing.py
"""
Order pricing. Pure functions; never raise, NaN terms count as 0.

Entity-borne percentage charges apply to the discounted base
(sub_total - discount). Vendor-borne (non entity-borne) percentage charges
apply to the raw sub_total. Vendor charges are not part of the grand total;
they are settled separately from an internal account.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ...utils.helpers import to_amount
from ..payments.payment_utilities.calculations import (
    clamp_non_negative,
    overpaid_by,
    remaining_amount,
    total_paid,
)
from .charges import amount_from_percentage, charge_value, percentage_from_amount

__all__ = [
    "sub_total",
    "charge_amount",
    "grand_total",
    "vendor_charges",
    "total_paid",
    "remaining_amount",
    "overpaid_by",
    "discount_percentage",
    "discount_from_percentage",
    "Totals",
    "totals_for",
]


def sub_total(items: Iterable) -> float:
    """Sum of rate * quantity over line items with a product and variant selected."""
    total = 0.0
    for it in items or []:
        if not (getattr(it, "product_id", "") and getattr(it, "variant_id", "")):
            continue
        total += to_amount(it.rate) * to_amount(it.quantity)
    return total


def charge_amount(sub: float, discount: float, charges: Iterable) -> float:
    """Entity-borne charges; percentage ones on (sub_total - discount)."""
    base = to_amount(sub) - to_amount(discount)
    return sum(charge_value(c, base) for c in charges or [] if c.beared_by_entity)


def grand_total(sub: float, discount: float, charges: Iterable) -> float:
    return clamp_non_negative(to_amount(sub) - to_amount(discount) + charge_amount(sub, discount, charges))


def vendor_charges(sub: float, charges: Iterable) -> float:
    """Charges the organisation bears; percentage ones on the raw sub_total."""
    return sum(charge_value(c, to_amount(sub)) for c in charges or [] if not c.beared_by_entity)


def discount_percentage(sub: float, discount: float) -> float:
    return percentage_from_amount(sub, discount)


def discount_from_percentage(sub: float, percentage: float) -> float:
    return amount_from_percentage(sub, percentage)


@dataclass(frozen=True)
class Totals:
    sub_total: float
    discount: float
    charge_amount: float
    grand_total: float
    vendor_charges: float
    total_paid: float
    remaining: float
    overpaid: float


def totals_for(draft) -> Totals:
    """Every derived figure of a draft, recomputed from scratch."""
    sub = sub_total(draft.products)
    disc = to_amount(draft.discount.amount)
    charges = list(draft.charges)
    grand = grand_total(sub, disc, charges)
    paid = total_paid(draft.payments)
    return Totals(
        sub_total=sub,
        discount=disc,
        charge_amount=charge_amount(sub, disc, charges),
        grand_total=grand,
        vendor_charges=vendor_charges(sub, charges),
        total_paid=paid,
        remaining=remaining_amount(grand, paid),
        overpaid=overpaid_by(grand, paid),
    )
