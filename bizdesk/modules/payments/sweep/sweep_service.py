# bizdesk/modules/payments/sweep/sweep_service.py
"""
Apply one payment from an entity across its open orders.

The plan is validated up front (positive amount, account chosen, amount not
above the entity's total outstanding balance). Each allocation is then sent
as its own order-transaction call, concurrently. There is no rollback: every
allocation's outcome is reported so the caller can show which orders were
paid and which were not.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Tuple

from ....api.client import ApiError
from ....api.repositories.orders_repo import OrdersRepo
from ....constants import EPS
from ....utils.helpers import fmt_money, to_amount
from .allocations_model import SweepAllocationsModel, SweepPlan

_log = logging.getLogger(__name__)

MAX_WORKERS = 8


@dataclass
class SweepResult:
    plan: SweepPlan
    succeeded: List[dict] = field(default_factory=list)
    failed: List[Tuple[dict, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def partial(self) -> bool:
        return bool(self.failed) and bool(self.succeeded)

    def summary(self) -> str:
        if self.ok:
            return f"Payment of {fmt_money(self.plan.allocated_total)} applied to {len(self.succeeded)} order(s)."
        lines = [
            f"{len(self.failed)} of {len(self.plan.rows)} allocation(s) failed:",
            *[f"- order {row['order_id']} ({fmt_money(row['amount'])}): {err}" for row, err in self.failed],
        ]
        if self.succeeded:
            lines.append(
                "Applied: " + ", ".join(f"order {r['order_id']} ({fmt_money(r['amount'])})" for r in self.succeeded)
            )
        return "\n".join(lines)


class PaymentSweepService:
    def __init__(self, orders: OrdersRepo, *, max_workers: int = MAX_WORKERS):
        self.orders = orders
        self.max_workers = max_workers

    def plan(self, entity, amount: float, account_id: str, details: dict | None = None) -> tuple[SweepPlan | None, str]:
        """Build and validate the allocation plan. Returns (plan, error)."""
        amt = to_amount(amount)
        if amt <= EPS:
            return None, "Payment amount must be greater than zero."
        if not account_id:
            return None, "Select an account."
        model = SweepAllocationsModel()
        model.set_candidates(entity.orders)
        outstanding = model.total_outstanding()
        if outstanding <= EPS:
            return None, "This entity has no outstanding orders."
        if amt - outstanding > EPS:
            return None, (
                f"Payment of {fmt_money(amt)} exceeds the outstanding balance of "
                f"{fmt_money(outstanding)}."
            )
        return model.allocate(amt, account_id, details), ""

    def run(self, plan: SweepPlan) -> SweepResult:
        result = SweepResult(plan=plan)
        if not plan.rows:
            return result

        def _send(row: dict):
            return self.orders.add_order_transaction(
                row["order_id"], amount=row["amount"], account_id=row["account_id"], details=row["details"]
            )

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(plan.rows))) as pool:
            futures = [(row, pool.submit(_send, row)) for row in plan.rows]
            for row, fut in futures:
                try:
                    fut.result()
                    result.succeeded.append(row)
                except ApiError as e:
                    _log.error("sweep allocation to order %s failed: %s", row["order_id"], e)
                    result.failed.append((row, str(e)))

        if result.failed:
            _log.warning(
                "payment sweep partially applied: %d ok, %d failed", len(result.succeeded), len(result.failed)
            )
        else:
            _log.info("payment sweep applied %.2f across %d order(s)", plan.allocated_total, len(result.succeeded))
        return result
