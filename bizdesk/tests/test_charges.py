# bizdesk/tests/test_charges.py
from __future__ import annotations

import pytest

from bizdesk.constants import (
    CHARGE_FIXED,
    CHARGE_PERCENTAGE,
    VAT_ALWAYS,
    VAT_CONDITIONAL,
    VAT_NEVER,
)
from bizdesk.modules.order.charges import Charge, ChargeList, ChargePolicyError


def test_add_charge_is_zero_fixed_with_unique_id():
    cl = ChargeList()
    a = cl.add_charge()
    b = cl.add_charge("Delivery")
    assert a.id != b.id
    assert (a.type, a.amount, a.beared_by_entity) == (CHARGE_FIXED, 0.0, True)
    assert b.label == "Delivery"
    assert len(cl) == 2


def test_base_change_recomputes_percentage_amount_and_fixed_display():
    cl = ChargeList()
    fee = cl.add_charge()
    cl.set_amount(fee.id, 20, 200)
    svc = cl.add_charge()
    cl.set_charge_type(svc.id, CHARGE_PERCENTAGE, 200)
    cl.set_percentage(svc.id, 5, 200)

    assert cl.recalculate_on_base_change(400) is True
    assert cl.get(svc.id).amount == pytest.approx(20)
    assert cl.get(fee.id).amount == 20
    assert cl.get(fee.id).percentage == pytest.approx(5)


def test_base_change_without_effect_reports_no_change():
    cl = ChargeList()
    c = cl.add_charge()
    cl.set_amount(c.id, 10, 100)
    assert cl.recalculate_on_base_change(100) is False


def test_fixed_display_percentage_is_zero_on_zero_base():
    cl = ChargeList()
    c = cl.add_charge()
    cl.set_amount(c.id, 10, 0)
    assert cl.get(c.id).percentage == 0
    cl.recalculate_on_base_change(0)
    assert cl.get(c.id).amount == 10


def test_type_round_trip_keeps_amount():
    cl = ChargeList()
    c = cl.add_charge()
    cl.set_amount(c.id, 33.33, 777)
    cl.set_charge_type(c.id, CHARGE_PERCENTAGE, 777)
    cl.set_charge_type(c.id, CHARGE_FIXED, 777)
    assert cl.get(c.id).amount == pytest.approx(33.33, abs=1e-9)


def test_percentage_is_clamped_to_0_100():
    cl = ChargeList()
    c = cl.add_charge()
    cl.set_charge_type(c.id, CHARGE_PERCENTAGE, 100)
    cl.set_percentage(c.id, 150, 100)
    assert cl.get(c.id).percentage == 100
    cl.set_percentage(c.id, -3, 100)
    assert cl.get(c.id).percentage == 0


def test_payload_only_positive_entity_borne():
    cl = ChargeList()
    zero = cl.add_charge("zero")
    paid = cl.add_charge("paid")
    cl.set_amount(paid.id, 12, 100)
    ours = cl.add_charge("ours", beared_by_entity=False)
    cl.set_amount(ours.id, 8, 100)

    payload = cl.to_payload()
    assert [p["label"] for p in payload] == ["paid"]
    assert payload[0]["bearedByEntity"] is True
    assert payload[0]["isVat"] is False
    assert zero.id not in {p["id"] for p in payload}


def test_payload_takes_percentage_amounts_on_entity_base():
    cl = ChargeList()
    vat = cl.add_vat(100)
    fee = cl.add_charge("fee")
    cl.set_amount(fee.id, 5, 100)
    assert vat.amount == pytest.approx(13)

    payload = {p["id"]: p["amount"] for p in cl.to_payload(80)}
    assert payload[vat.id] == pytest.approx(10.4)
    assert payload[fee.id] == pytest.approx(5)
    assert vat.amount == pytest.approx(13)


def test_from_payload_round_trip():
    c = Charge(id="x", label="VAT", type=CHARGE_PERCENTAGE, amount=13, percentage=13, is_vat=True)
    assert Charge.from_payload(c.to_payload()) == c


# ---------- VAT policy ----------

def test_always_appends_vat_once():
    cl = ChargeList()
    assert cl.ensure_vat_policy(VAT_ALWAYS, 200) is True
    vat = cl.vat_charge()
    assert vat is not None
    assert (vat.label, vat.type, vat.percentage, vat.is_vat) == ("VAT", CHARGE_PERCENTAGE, 13.0, True)
    assert vat.amount == pytest.approx(26)
    assert cl.ensure_vat_policy(VAT_ALWAYS, 200) is False
    assert sum(1 for c in cl if c.is_vat) == 1


def test_always_vat_cannot_be_removed_or_changed():
    cl = ChargeList()
    cl.ensure_vat_policy(VAT_ALWAYS, 100)
    vat = cl.vat_charge()
    with pytest.raises(ChargePolicyError):
        cl.remove_charge(vat.id)
    with pytest.raises(ChargePolicyError):
        cl.set_percentage(vat.id, 5, 100)
    with pytest.raises(ChargePolicyError):
        cl.set_charge_type(vat.id, CHARGE_FIXED, 100)
    assert cl.vat_charge() is not None


def test_never_blocks_adding_but_keeps_existing():
    existing = Charge(id="v", label="VAT", type=CHARGE_PERCENTAGE, percentage=13, amount=13, is_vat=True)
    cl = ChargeList([existing], vat_status=VAT_NEVER)
    assert cl.ensure_vat_policy(VAT_NEVER, 100) is False
    assert cl.vat_charge() is existing

    empty = ChargeList(vat_status=VAT_NEVER)
    with pytest.raises(ChargePolicyError):
        empty.add_vat(100)


def test_conditional_allows_single_user_vat():
    cl = ChargeList(vat_status=VAT_CONDITIONAL)
    vat = cl.add_vat(300)
    assert vat.amount == pytest.approx(39)
    with pytest.raises(ChargePolicyError):
        cl.add_vat(300)
    cl.remove_charge(vat.id)
    assert cl.vat_charge() is None


def test_unknown_charge_id_raises_key_error():
    with pytest.raises(KeyError):
        ChargeList().get("missing")
