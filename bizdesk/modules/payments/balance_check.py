# bizdesk/modules/payments/balance_check.py
"""
Account balance sufficiency for BUY orders.

Running-balance policy: payments in one draft that hit the same account are
deducted from that account's starting balance in entry order, so two 60
payments against a balance of 100 fail on the second one. SELL orders credit
accounts and are never checked.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ...constants import EPS, ORDER_BUY
from ...utils.helpers import fmt_money, to_amount


@dataclass(frozen=True)
class AccountSummary:
    account: object
    total_required: float
    balance: float
    shortfall: float

    @property
    def insufficient(self) -> bool:
        return self.shortfall > EPS


def _index(accounts: Iterable) -> dict:
    return {a.id: a for a in accounts or []}


def committed_to(account_id: str, payments: Iterable) -> float:
    """Sum already promised from an account by the given payments."""
    return sum(to_amount(p.amount) for p in payments or [] if p.account_id == account_id)


def available_balance(account, payments: Iterable = ()) -> float:
    """Account balance left after the payments already in the draft."""
    return to_amount(account.balance) - committed_to(account.id, payments)


def check_payment(account, amount: float, earlier_payments: Iterable = ()) -> tuple[bool, str]:
    """One BUY payment against what is left on its account."""
    available = available_balance(account, earlier_payments)
    amt = to_amount(amount)
    if amt - available > EPS:
        shortfall = amt - max(available, 0.0)
        return False, (
            f"Insufficient balance in {account.name}: available {fmt_money(max(available, 0.0))}, "
            f"required {fmt_money(amt)} (short by {fmt_money(shortfall)})."
        )
    return True, ""


def validate_buy_payments(payments: list, accounts: Iterable) -> tuple[bool, str]:
    """
    Walk the payments in order with a running balance per account.
    Unknown accounts are rejected as well.
    """
    idx = _index(accounts)
    seen: list = []
    for i, p in enumerate(payments or []):
        acct = idx.get(p.account_id)
        if acct is None:
            return False, f"Payment {i + 1}: account not found."
        ok, msg = check_payment(acct, p.amount, seen)
        if not ok:
            return False, f"Payment {i + 1}: {msg}"
        seen.append(p)
    return True, ""


def account_summaries(payments: list, accounts: Iterable, order_type: str) -> list[AccountSummary]:
    """
    Per-account requirement vs balance for the balance summary panel.
    Insufficient accounts sort first, then by account name. Empty for non-BUY.
    """
    if order_type != ORDER_BUY or not payments:
        return []
    idx = _index(accounts)
    required: dict[str, float] = {}
    for p in payments:
        required[p.account_id] = required.get(p.account_id, 0.0) + to_amount(p.amount)

    out: list[AccountSummary] = []
    for account_id, total in required.items():
        acct = idx.get(account_id)
        if acct is None:
            continue
        balance = to_amount(acct.balance)
        out.append(AccountSummary(
            account=acct,
            total_required=total,
            balance=balance,
            shortfall=max(0.0, total - balance),
        ))
    out.sort(key=lambda s: (not s.insufficient, (s.account.name or "").lower()))
    return out


def total_shortfall(summaries: Iterable[AccountSummary]) -> float:
    return sum(s.shortfall for s in summaries or [])


def check_vendor_charge_account(account: Optional[object], amount: float) -> tuple[bool, str]:
    """The account settling vendor charges must cover them in full."""
    if to_amount(amount) <= EPS:
        return True, ""
    if account is None:
        return False, "Select an account to pay vendor charges from."
    if to_amount(amount) - to_amount(account.balance) > EPS:
        return False, (
            f"Insufficient balance in {account.name} for vendor charges: "
            f"available {fmt_money(account.balance)}, required {fmt_money(amount)}."
        )
    return True, ""
