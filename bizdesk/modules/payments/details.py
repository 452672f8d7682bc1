# bizdesk/modules/payments/details.py
"""
Per-payment instrument details, keyed by the paying account's type.

Only cheque accounts carry details today; every other account type pays with
NoDetails. Details serialize to the plain object the API stores under
`details`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ...constants import ACCOUNT_CHEQUE
from ...utils.validators import non_empty


@dataclass(frozen=True)
class NoDetails:
    def to_payload(self) -> dict:
        return {}


@dataclass(frozen=True)
class ChequeDetails:
    issuer: str
    bank: str
    number: str
    date: str  # YYYY-MM-DD

    def to_payload(self) -> dict:
        return {
            "chequeIssuer": self.issuer,
            "chequeIssuerBank": self.bank,
            "chequeNumber": self.number,
            "chequeDate": self.date,
        }


PaymentDetails = Union[NoDetails, ChequeDetails]


def requires_cheque(account_type: str | None) -> bool:
    return (account_type or "").upper() == ACCOUNT_CHEQUE


def validate_details(account_type: str | None, details: PaymentDetails) -> tuple[bool, str]:
    """Cheque accounts need every cheque field; other accounts take no details."""
    if requires_cheque(account_type):
        if not isinstance(details, ChequeDetails):
            return False, "Cheque details are required for cheque accounts."
        missing = [
            name for name, val in (
                ("issuer", details.issuer),
                ("bank", details.bank),
                ("cheque number", details.number),
                ("cheque date", details.date),
            ) if not non_empty(val)
        ]
        if missing:
            return False, "Missing cheque " + ", ".join(missing) + "."
        return True, ""
    if isinstance(details, ChequeDetails):
        return False, "Cheque details can only be attached to a cheque account."
    return True, ""


def details_from_payload(account_type: str | None, data: dict | None) -> PaymentDetails:
    """Rebuild details from an API object (e.g. when editing an order)."""
    data = data or {}
    if requires_cheque(account_type) and data:
        return ChequeDetails(
            issuer=str(data.get("chequeIssuer", "") or ""),
            bank=str(data.get("chequeIssuerBank", "") or ""),
            number=str(data.get("chequeNumber", "") or ""),
            date=str(data.get("chequeDate", "") or ""),
        )
    return NoDetails()
