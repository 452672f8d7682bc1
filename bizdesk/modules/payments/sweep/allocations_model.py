# bizdesk/modules/payments/sweep/allocations_model.py
"""
Split one lump payment from an entity across its open orders.

- Inputs: the entity's orders; remaining = total_amount - sum(transactions)
- Orders with nothing remaining are skipped
- Oldest createdAt first; each order gets min(pool, remaining)
- Output rows map 1:1 to OrdersRepo.add_order_transaction(**row)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List

from ....constants import CURRENCY_STEP, EPS
from ..payment_utilities.calculations import order_remaining


@dataclass
class OrderCandidate:
    order_id: str
    created_at: str
    remaining: float  # > 0


@dataclass
class SweepPlan:
    requested_total: float
    allocated_total: float
    unallocated: float
    rows: List[dict] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def fully_allocated(self) -> bool:
        return self.unallocated <= EPS


class SweepAllocationsModel:
    def __init__(self, currency_step: float = CURRENCY_STEP) -> None:
        self._step = float(currency_step)
        self._candidates: List[OrderCandidate] = []

    def set_candidates(self, orders: Iterable) -> None:
        self._candidates = []
        for o in orders or []:
            rem = order_remaining(o)
            if rem <= EPS:
                continue
            self._candidates.append(
                OrderCandidate(order_id=str(o.id), created_at=str(o.created_at or ""), remaining=rem)
            )
        self._candidates.sort(key=lambda c: (c.created_at, c.order_id))

    def candidates(self) -> List[OrderCandidate]:
        return list(self._candidates)

    def total_outstanding(self) -> float:
        return self._round_to_step(sum(c.remaining for c in self._candidates))

    # ---------------------------------------------------------------- allocation

    def allocate(self, total_amount: float, account_id: str, details: dict | None = None) -> SweepPlan:
        warnings: List[str] = []
        pool = self._round_to_step(max(0.0, float(total_amount)))
        if pool == 0.0:
            warnings.append("Nothing to allocate.")
        if not self._candidates:
            return SweepPlan(
                requested_total=pool,
                allocated_total=0.0,
                unallocated=pool,
                rows=[],
                warnings=["No open balance to allocate."] + warnings,
            )

        rows: List[dict] = []
        for c in self._candidates:
            if pool <= 0:
                break
            amount = self._round_to_step(min(c.remaining, pool))
            if amount <= 0:
                continue
            rows.append({
                "order_id": c.order_id,
                "account_id": account_id,
                "amount": amount,
                "details": dict(details or {}),
            })
            pool = self._round_to_step(pool - amount)

        allocated_total = self._round_to_step(sum(r["amount"] for r in rows))
        unallocated = self._round_to_step(max(0.0, pool))
        if unallocated > 0:
            warnings.append("Amount exceeds the outstanding balance of all orders.")

        return SweepPlan(
            requested_total=self._round_to_step(float(total_amount)),
            allocated_total=allocated_total,
            unallocated=unallocated,
            rows=rows,
            warnings=warnings,
        )

    # ---------------------------------------------------------------- rounding

    def _round_to_step(self, x: float) -> float:
        step = self._step
        if step <= 0:
            return float(x)
        q = int((x / step) + (0.5 if x >= 0 else -0.5))
        return round(q * step, 10)
