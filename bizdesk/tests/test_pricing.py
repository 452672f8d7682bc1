# bizdesk/tests/test_pricing.py
from __future__ import annotations

import math

import pytest

from bizdesk.constants import CHARGE_FIXED, CHARGE_PERCENTAGE, ORDER_BUY
from bizdesk.modules.order.charges import Charge, ChargeList
from bizdesk.modules.order.draft import Discount, LineItem, OrderDraft, Payment
from bizdesk.modules.order.pricing import (
    charge_amount,
    discount_from_percentage,
    discount_percentage,
    grand_total,
    overpaid_by,
    remaining_amount,
    sub_total,
    total_paid,
    totals_for,
    vendor_charges,
)


def _item(rate, qty, pid="p1", vid="v1"):
    return LineItem(product_id=pid, variant_id=vid, rate=rate, quantity=qty)


def _fixed(amount, *, entity=True):
    return Charge(id=f"f{amount}", label="fee", type=CHARGE_FIXED, amount=amount, beared_by_entity=entity)


def _pct(pct, *, entity=True):
    return Charge(id=f"p{pct}", label="pct", type=CHARGE_PERCENTAGE, percentage=pct, beared_by_entity=entity)


def test_reference_scenario_grand_total():
    items = [_item(100, 2), _item(50, 1, vid="v2")]
    charges = [_fixed(10)]
    sub = sub_total(items)
    assert sub == 250
    assert charge_amount(sub, 20, charges) == 10
    assert grand_total(sub, 20, charges) == 240


def test_sub_total_skips_incomplete_lines_and_nan():
    items = [
        _item(100, 2),
        LineItem(product_id="p1", variant_id="", rate=999, quantity=3),
        _item(float("nan"), 4, vid="v2"),
    ]
    assert sub_total(items) == 200


def test_entity_percentage_charge_uses_discounted_base():
    # (200 - 50) * 10% = 15
    assert charge_amount(200, 50, [_pct(10)]) == pytest.approx(15)


def test_vendor_percentage_charge_uses_raw_sub_total():
    charges = [_pct(10, entity=False), _fixed(5, entity=False), _fixed(7)]
    assert vendor_charges(200, charges) == pytest.approx(25)
    # vendor charges never reach the entity's total
    assert grand_total(200, 50, charges) == pytest.approx(157)


@pytest.mark.parametrize("sub,disc", [(0, 0), (10, 50), (100, 100), (5, 1e9)])
def test_grand_total_never_negative(sub, disc):
    assert grand_total(sub, disc, [_fixed(1)]) >= 0


def test_remaining_and_overpaid_are_clamped():
    assert remaining_amount(100, 30) == 70
    assert remaining_amount(100, 130) == 0
    assert overpaid_by(100, 130) == 30
    assert overpaid_by(100, 30) == 0


def test_total_paid_accepts_objects_and_dicts():
    pays = [Payment(amount=10, account_id="a"), {"amount": "5.5"}, {"amount": None}]
    assert total_paid(pays) == pytest.approx(15.5)


def test_discount_percentage_helpers():
    assert discount_percentage(200, 50) == 25
    assert discount_percentage(0, 50) == 0
    assert discount_from_percentage(200, 25) == 50


def test_totals_for_draft():
    draft = OrderDraft(order_type=ORDER_BUY)
    draft.products = [_item(100, 2), _item(50, 1, vid="v2")]
    draft.discount = Discount()
    draft.discount.set_amount(20, 250)
    draft.charges = ChargeList([_fixed(10), _fixed(4, entity=False)])
    draft.payments = [Payment(amount=200, account_id="acc-bank")]

    t = totals_for(draft)
    assert t.sub_total == 250
    assert t.discount == 20
    assert t.charge_amount == 10
    assert t.grand_total == 240
    assert t.vendor_charges == 4
    assert t.total_paid == 200
    assert t.remaining == 40
    assert t.overpaid == 0
    assert not math.isnan(t.grand_total)
