# bizdesk/modules/payments/allocator.py
"""
Manual payment entry for the order wizard.

The user adds payments one at a time; the add-payment dialog pre-fills the
full remaining amount and defaults to the first cash-counter account.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from ...constants import ACCOUNT_CASH_COUNTER, EPS, ORDER_BUY
from ...utils.helpers import to_amount
from .balance_check import check_payment
from ..order.draft import Payment
from .details import NoDetails, PaymentDetails, validate_details

_log = logging.getLogger(__name__)


def default_account(accounts: Iterable):
    """First CASH_COUNTER account, or None."""
    for a in accounts or []:
        if (a.type or "").upper() == ACCOUNT_CASH_COUNTER:
            return a
    return None


def prefill_amount(remaining: float) -> float:
    return max(0.0, to_amount(remaining))


def validate_new_payment(
    order_type: str,
    amount: float,
    account,
    details: PaymentDetails,
    existing_payments: Iterable = (),
) -> tuple[bool, str]:
    amt = to_amount(amount)
    if amt <= EPS or account is None:
        return False, "Please enter an amount and select an account."
    ok, msg = validate_details(account.type, details)
    if not ok:
        return False, msg
    if order_type == ORDER_BUY:
        return check_payment(account, amt, existing_payments)
    return True, ""


def add_payment(
    draft,
    amount: float,
    account_id: str,
    accounts: Iterable,
    details: Optional[PaymentDetails] = None,
) -> tuple[bool, str]:
    """Validate and append a payment to the draft. Returns (ok, message)."""
    details = details or NoDetails()
    account = next((a for a in accounts or [] if a.id == account_id), None)
    ok, msg = validate_new_payment(draft.order_type, amount, account, details, draft.payments)
    if not ok:
        return False, msg
    draft.payments.append(Payment(amount=to_amount(amount), account_id=account_id, details=details))
    _log.debug("payment added: %.2f -> %s", to_amount(amount), account_id)
    return True, ""


def remove_payment(draft, index: int) -> None:
    if 0 <= index < len(draft.payments):
        del draft.payments[index]
