# bizdesk/tests/test_balance_check.py
from __future__ import annotations

from bizdesk.api.repositories.accounts_repo import Account
from bizdesk.constants import ORDER_BUY, ORDER_SELL
from bizdesk.modules.order.draft import OrderDraft, Payment
from bizdesk.modules.payments import allocator
from bizdesk.modules.payments.balance_check import (
    account_summaries,
    available_balance,
    check_vendor_charge_account,
    total_shortfall,
    validate_buy_payments,
)
from bizdesk.modules.payments.details import ChequeDetails


def _acct(id_, balance, name=None, type_="BANK"):
    return Account(id=id_, name=name or id_, type=type_, balance=balance)


def test_running_balance_rejects_second_payment():
    accounts = [_acct("a", 100, "Alpha")]
    pays = [Payment(amount=60, account_id="a"), Payment(amount=60, account_id="a")]
    ok, msg = validate_buy_payments(pays, accounts)
    assert not ok
    assert msg.startswith("Payment 2:")
    assert "Alpha" in msg


def test_running_balance_accepts_exact_use():
    accounts = [_acct("a", 100)]
    pays = [Payment(amount=60, account_id="a"), Payment(amount=40, account_id="a")]
    assert validate_buy_payments(pays, accounts) == (True, "")


def test_unknown_account_is_rejected():
    ok, msg = validate_buy_payments([Payment(amount=1, account_id="zz")], [_acct("a", 100)])
    assert not ok
    assert "not found" in msg


def test_available_balance_subtracts_earlier_payments():
    a = _acct("a", 100)
    assert available_balance(a, [Payment(amount=30, account_id="a"), Payment(amount=5, account_id="b")]) == 70


def test_account_summaries_sort_insufficient_first():
    accounts = [_acct("a", 500, "Alpha"), _acct("b", 50, "Beta"), _acct("c", 10, "Cash")]
    pays = [
        Payment(amount=100, account_id="a"),
        Payment(amount=30, account_id="b"),
        Payment(amount=30, account_id="b"),
        Payment(amount=5, account_id="c"),
    ]
    rows = account_summaries(pays, accounts, ORDER_BUY)
    assert [r.account.name for r in rows] == ["Beta", "Alpha", "Cash"]
    beta = rows[0]
    assert beta.total_required == 60
    assert beta.shortfall == 10
    assert beta.insufficient
    assert total_shortfall(rows) == 10


def test_account_summaries_empty_for_sell():
    pays = [Payment(amount=1000, account_id="a")]
    assert account_summaries(pays, [_acct("a", 1)], ORDER_SELL) == []


def test_vendor_charge_account_check():
    assert check_vendor_charge_account(None, 0) == (True, "")
    ok, msg = check_vendor_charge_account(None, 5)
    assert not ok and "Select an account" in msg
    ok, _ = check_vendor_charge_account(_acct("a", 4), 5)
    assert not ok
    assert check_vendor_charge_account(_acct("a", 5), 5) == (True, "")


# ---------- manual allocator ----------

def test_default_account_is_first_cash_counter(accounts):
    assert allocator.default_account(accounts).id == "acc-cash"
    assert allocator.default_account([_acct("a", 1)]) is None


def test_add_payment_requires_amount_and_account(accounts):
    draft = OrderDraft(order_type=ORDER_SELL)
    ok, msg = allocator.add_payment(draft, 0, "acc-bank", accounts)
    assert not ok and msg == "Please enter an amount and select an account."
    ok, _ = allocator.add_payment(draft, 10, "nope", accounts)
    assert not ok
    assert draft.payments == []


def test_add_payment_buy_checks_balance(accounts):
    draft = OrderDraft(order_type=ORDER_BUY)
    assert allocator.add_payment(draft, 80, "acc-cash", accounts) == (True, "")
    ok, msg = allocator.add_payment(draft, 30, "acc-cash", accounts)
    assert not ok
    assert "short by" in msg
    assert len(draft.payments) == 1


def test_sell_payment_ignores_balance(accounts):
    draft = OrderDraft(order_type=ORDER_SELL)
    assert allocator.add_payment(draft, 5000, "acc-cash", accounts) == (True, "")


def test_cheque_account_needs_details(accounts):
    draft = OrderDraft(order_type=ORDER_SELL)
    ok, msg = allocator.add_payment(draft, 10, "acc-chq", accounts)
    assert not ok and "Cheque" in msg
    details = ChequeDetails(issuer="Ann", bank="HBL", number="0042", date="2024-05-01")
    assert allocator.add_payment(draft, 10, "acc-chq", accounts, details) == (True, "")
    assert draft.payments[0].to_payload()["details"]["chequeNumber"] == "0042"


def test_remove_payment_ignores_bad_index(accounts):
    draft = OrderDraft(order_type=ORDER_SELL)
    allocator.add_payment(draft, 10, "acc-bank", accounts)
    allocator.remove_payment(draft, 5)
    assert len(draft.payments) == 1
    allocator.remove_payment(draft, 0)
    assert draft.payments == []


def test_prefill_amount_is_remaining():
    assert allocator.prefill_amount(42.5) == 42.5
    assert allocator.prefill_amount(-1) == 0
