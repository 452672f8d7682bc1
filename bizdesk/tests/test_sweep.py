# bizdesk/tests/test_sweep.py
from __future__ import annotations

import pytest

from bizdesk.api.repositories.entities_repo import Entity, OrderRef
from bizdesk.modules.payments.sweep.allocations_model import SweepAllocationsModel
from bizdesk.modules.payments.sweep.sweep_service import PaymentSweepService

ORG = "org1"


def _entity(*remaining):
    orders = [
        OrderRef(id=f"o{i}", total_amount=r, created_at=f"2024-01-0{i + 1}T00:00:00Z")
        for i, r in enumerate(remaining)
    ]
    return Entity(id="e1", name="Entity", orders=orders)


def test_oldest_first_partial_allocation():
    model = SweepAllocationsModel()
    model.set_candidates(_entity(30, 50, 20).orders)
    plan = model.allocate(60, "acc-bank")
    assert [(r["order_id"], r["amount"]) for r in plan.rows] == [("o0", 30), ("o1", 30)]
    assert plan.allocated_total == 60
    assert plan.fully_allocated


def test_candidates_skip_settled_and_sort_by_created_at(entity_with_orders):
    model = SweepAllocationsModel()
    model.set_candidates(entity_with_orders.orders)
    assert [c.order_id for c in model.candidates()] == ["o1", "o2", "o3"]
    assert model.candidates()[0].remaining == 30
    assert model.total_outstanding() == 100


def test_allocation_never_exceeds_remaining(entity_with_orders):
    model = SweepAllocationsModel()
    model.set_candidates(entity_with_orders.orders)
    plan = model.allocate(100, "a")
    by_id = {c.order_id: c.remaining for c in model.candidates()}
    for row in plan.rows:
        assert row["amount"] <= by_id[row["order_id"]]
    assert sum(r["amount"] for r in plan.rows) == pytest.approx(100)


def test_plan_rejects_overpayment(orders_repo):
    svc = PaymentSweepService(orders_repo)
    plan, err = svc.plan(_entity(30, 50), 100, "acc-bank")
    assert plan is None
    assert "exceeds the outstanding balance" in err


@pytest.mark.parametrize("amount,account,expected", [
    (0, "acc-bank", "greater than zero"),
    (10, "", "Select an account"),
])
def test_plan_input_validation(orders_repo, amount, account, expected):
    plan, err = PaymentSweepService(orders_repo).plan(_entity(30), amount, account)
    assert plan is None
    assert expected in err


def test_plan_with_nothing_outstanding(orders_repo):
    plan, err = PaymentSweepService(orders_repo).plan(_entity(), 10, "acc-bank")
    assert plan is None
    assert err == "This entity has no outstanding orders."


def test_run_posts_one_transaction_per_order(server, orders_repo):
    for oid in ("o0", "o1"):
        server.route("POST", f"/orgs/{ORG}/orders/{oid}/transactions", (201, {"id": f"t-{oid}"}))
    svc = PaymentSweepService(orders_repo)
    plan, _ = svc.plan(_entity(30, 50, 20), 60, "acc-bank", {"chequeNumber": "9"})
    result = svc.run(plan)

    assert result.ok
    posted = {path: body for _, path, body in server.calls("POST")}
    assert posted[f"/orgs/{ORG}/orders/o0/transactions"] == {
        "amount": 30, "accountId": "acc-bank", "details": {"chequeNumber": "9"},
    }
    assert posted[f"/orgs/{ORG}/orders/o1/transactions"]["amount"] == 30
    assert len(posted) == 2


def test_run_reports_partial_failure(server, orders_repo):
    server.route("POST", f"/orgs/{ORG}/orders/o0/transactions", (201, {}))
    server.route("POST", f"/orgs/{ORG}/orders/o1/transactions", (500, {"message": "db down"}))
    svc = PaymentSweepService(orders_repo)
    plan, _ = svc.plan(_entity(30, 50), 80, "acc-bank")
    result = svc.run(plan)

    assert not result.ok
    assert result.partial
    assert [r["order_id"] for r in result.succeeded] == ["o0"]
    (row, err), = result.failed
    assert row["order_id"] == "o1"
    assert err == "db down"
    assert "1 of 2 allocation(s) failed" in result.summary()
