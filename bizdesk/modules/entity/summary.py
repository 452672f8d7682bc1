# bizdesk/modules/entity/summary.py
"""
Payment standing of an entity's existing orders.

Used by the entity payment dialog to show how much is owed before a lump
payment is swept across the open orders.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ...constants import EPS
from ...utils.helpers import to_amount
from ..payments.payment_utilities.calculations import (
    clamp_non_negative,
    order_paid_amount,
    order_remaining,
    status_from_paid,
)
from ..payments.payment_utilities.status import (
    STATUS_PAID,
    STATUS_PARTIAL,
    STATUS_PENDING,
    is_valid,
    label,
    normalize,
    sort_key,
)


def payment_status(order) -> str:
    """
    Server-reported status when it is one we know, otherwise derived from
    the recorded transactions.
    """
    reported = normalize(getattr(order, "payment_status", None))
    if reported and is_valid(reported):
        return reported
    return status_from_paid(to_amount(order.total_amount) - EPS, order_paid_amount(order))


@dataclass(frozen=True)
class EntityOrderStats:
    order_count: int = 0
    total_amount: float = 0.0
    paid: float = 0.0
    remaining: float = 0.0
    by_status: dict = field(default_factory=dict)

    @property
    def open_orders(self) -> int:
        return self.by_status.get(STATUS_PENDING, 0) + self.by_status.get(STATUS_PARTIAL, 0)


def entity_order_stats(orders: Iterable) -> EntityOrderStats:
    counts = {STATUS_PENDING: 0, STATUS_PARTIAL: 0, STATUS_PAID: 0}
    total = paid = remaining = 0.0
    n = 0
    for o in orders or []:
        n += 1
        total += to_amount(o.total_amount)
        paid += order_paid_amount(o)
        # overpaid orders do not offset what other orders still owe
        remaining += clamp_non_negative(order_remaining(o))
        status = payment_status(o)
        counts[status] = counts.get(status, 0) + 1
    return EntityOrderStats(
        order_count=n,
        total_amount=total,
        paid=paid,
        remaining=remaining,
        by_status=counts,
    )


def status_breakdown(stats: EntityOrderStats) -> str:
    """'Pending: 2, Partial: 1, Paid: 1', skipping empty buckets."""
    parts = [
        f"{label(s)}: {n}"
        for s, n in sorted(stats.by_status.items(), key=lambda kv: sort_key(kv[0]))
        if n
    ]
    return ", ".join(parts)
